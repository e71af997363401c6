"""Command-line entry point for the kidangu Sokoban engine."""

import argparse
import logging
import sys
from pathlib import Path

from kidangu.core import config
from kidangu.core.imaging import write_collection
from kidangu.core.levels import LevelRepository
from kidangu.core.moves import parse_moves
from kidangu.core.progress import ProgressStore
from kidangu.core.session import GameSession, MoveCommand


def configure_logging(verbose: bool = False) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kidangu", description="Sokoban level tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    parser.add_argument("--collections", type=Path, default=None, help="directory with level collections")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="turn directories of images into .lvl collections")
    convert.add_argument("directories", nargs="+", type=Path)

    show = sub.add_parser("show", help="print the current level of a collection")
    show.add_argument("name", nargs="?", default=config.DEFAULT_COLLECTION)

    play = sub.add_parser("play", help="apply LURD moves to the current level and save")
    play.add_argument("name")
    play.add_argument("moves")
    return parser


def _print_level(session: GameSession) -> None:
    collection = session.collection
    level = collection.level
    print(f"{collection.title} - level {collection.index + 1}/{collection.number_of_levels}"
          f" ({collection.number_of_solved_levels()} solved)")
    if level.title:
        print(level.title)
    print(level)
    print(f"moves: {level.number_of_moves}  pushes: {level.number_of_pushes}"
          f"{'  solved!' if level.is_solved() else ''}")


def run(argv=None) -> int:
    """Parse arguments and run the requested subcommand."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "convert":
        for directory in args.directories:
            write_collection(directory)
        return 0

    repository = LevelRepository(args.collections)
    store = ProgressStore()
    try:
        session = GameSession.open(args.name, repository, store)
    except KeyError:
        logging.error("Unknown collection %r (available: %s)", args.name, ", ".join(repository.keys()))
        return 1

    if args.command == "play":
        for move in parse_moves(args.moves):
            response = session.execute(MoveCommand(move.direction))
            if not response.ok:
                logging.warning("Stopped at %r: %s", move.to_char(), response.error)
                break
        session.save()

    _print_level(session)
    return 0


if __name__ == "__main__":
    sys.exit(run())
