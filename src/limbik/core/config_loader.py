"""JSON config file loading utilities."""

import json
from pathlib import Path
from typing import Any

from limbik.constants import RIG_CONFIG_DIR


def load_json(path: Path) -> Any:
    """Load and return parsed JSON from a file."""
    with open(path) as f:
        return json.load(f)


def load_rig_config(name: str | Path) -> Any:
    """Load a rig description.

    *name* may be an existing path or a file name inside assets/config/rigs/.
    """
    path = Path(name)
    if not path.exists():
        path = RIG_CONFIG_DIR / name
    return load_json(path)
