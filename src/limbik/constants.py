"""Shared constants and paths for LimbIK."""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"
RIG_CONFIG_DIR = CONFIG_DIR / "rigs"

# Solver defaults
DEFAULT_TOLERANCE = 0.05   # tip-to-target distance accepted as "reached"
DEFAULT_ITERATIONS = 10    # backward/forward passes per chain per frame

# Chains need at least a root and a tip
MIN_CHAIN_JOINTS = 2

# Pole bias only bends chains of 2 or 3 joints
MAX_POLE_CHAIN_JOINTS = 3

# Joint-local axis that points along the bone toward its child
DEFAULT_POLE_AXIS = (0.0, 1.0, 0.0)

# Lengths and norms below this are treated as zero
EPSILON = 1e-10
