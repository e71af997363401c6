"""Recorded command sequences that can be replayed with a single command.

There is one slot per function key. While a macro is being recorded, every
successful command is appended to it; storing the macro puts it into its
slot and replaces whatever was there before.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

MACRO_SLOTS = 12


def check_slot(slot: int) -> None:
    if not 0 <= slot < MACRO_SLOTS:
        raise ValueError(f"Macro slot {slot} out of range 0..{MACRO_SLOTS - 1}")


class Macros:
    def __init__(self) -> None:
        self._slots: Dict[int, Tuple[Any, ...]] = {}
        self._recording: List[Any] = []
        self._target: Optional[int] = None

    @property
    def recording_slot(self) -> Optional[int]:
        """Slot currently being recorded, or None."""
        return self._target

    def is_recording(self) -> bool:
        return self._target is not None

    def start_recording(self, slot: int) -> None:
        """Start a new macro; one still being recorded is stored first."""
        check_slot(slot)
        self.stop_recording()
        self._target = slot

    def push(self, command: Any) -> bool:
        """Append ``command`` to the macro being recorded; False if none is."""
        if self._target is None:
            return False
        self._recording.append(command)
        return True

    def stop_recording(self) -> int:
        """Store the macro being recorded and return its length (0 if none)."""
        if self._target is None:
            return 0
        commands = tuple(self._recording)
        self._slots[self._target] = commands
        logger.info("Stored macro %d with %d commands", self._target + 1, len(commands))
        self._recording = []
        self._target = None
        return len(commands)

    def get(self, slot: int) -> Tuple[Any, ...]:
        """Commands stored in ``slot``; empty while that slot is being recorded."""
        check_slot(slot)
        if slot == self._target:
            return ()
        return self._slots.get(slot, ())
