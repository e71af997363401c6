"""
Configuration for kidangu.

Paths and switches are read from environment variables once at import
time; everything else uses the defaults below.
"""

import os
from pathlib import Path

# Package root (contains data/collections)
PACKAGE_ROOT = Path(__file__).resolve().parent.parent

# Collections shipped with the package
BUNDLED_COLLECTIONS_DIR = PACKAGE_ROOT / "data" / "collections"

# Where progress is stored between sessions
DATA_DIR = Path(os.environ.get("KIDANGU_HOME", Path.home() / ".kidangu"))

PROGRESS_FILE = DATA_DIR / "progress.json"

# Directory searched for level collections (*.yaml, *.lvl)
COLLECTIONS_DIR = Path(os.environ.get("KIDANGU_COLLECTIONS", BUNDLED_COLLECTIONS_DIR))

# Skip the "solve before advancing" rule (useful for testing level sets)
UNLOCK_ALL = os.environ.get("KIDANGU_UNLOCK_ALL") == "1"

# Collection opened when none is named
DEFAULT_COLLECTION = "tutorial"
