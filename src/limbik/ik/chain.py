"""IK chain data model.

::

    |<------------- chain ------------->|
    |<-- segment 0 -->|<-- segment 1 -->|
    root ----------> joint 1 ---------> tip      (upper arm, forearm, hand)

``ChainSpec`` is what a rig author writes down; ``Chain`` is the resolved
limb the solver works on, with segment lengths and rest pose captured
once when it is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from limbik.constants import DEFAULT_POLE_AXIS, MAX_POLE_CHAIN_JOINTS
from limbik.core.math_utils import Quat, Vec3, quat_identity, quat_inverse, quat_multiply, vec3


@dataclass
class ChainSpec:
    """Authoring description of one limb.

    Give either ``joints`` (root to tip, in order) or ``root`` plus
    ``chain_length``.  When both are given the root wins.
    """
    name: str
    target: Any
    pole: Optional[Any] = None

    # Manual setup
    joints: Optional[list[Any]] = None

    # Automatic setup
    root: Optional[Any] = None
    chain_length: int = 0

    # Per-chain overrides of the solver settings
    tolerance: Optional[float] = None
    iterations: Optional[int] = None

    # Joint-local axis pointing along the bone, used for the pole plane
    pole_axis: tuple[float, float, float] = DEFAULT_POLE_AXIS


@dataclass
class Chain:
    """A resolved limb: joint references plus cached rest-pose data.

    ``segment_lengths`` are measured once at build time and never change;
    only positions and rotations move at runtime.  ``positions`` is the
    per-frame scratch buffer, refreshed from the host before every solve.
    """
    name: str
    joints: list[Any]
    target: Any
    pole: Optional[Any]
    segment_lengths: np.ndarray
    rest_directions: np.ndarray           # (N-1, 3), raw joint i -> i+1 vectors
    rest_rotations: list[Quat]            # N-1 world orientations
    tip_rest_rotation: Quat = field(default_factory=quat_identity)
    target_rest_rotation: Quat = field(default_factory=quat_identity)
    tolerance: float = 0.05
    iterations: int = 10
    pole_axis: Vec3 = field(default_factory=lambda: vec3(*DEFAULT_POLE_AXIS))

    positions: np.ndarray = field(init=False)
    anchor: Vec3 = field(init=False)      # root position at the start of each pass
    total_length: float = field(init=False)

    def __post_init__(self):
        lengths = np.array(self.segment_lengths, dtype=np.float64)
        lengths.setflags(write=False)
        self.segment_lengths = lengths
        self.total_length = float(sum(lengths))
        self.positions = np.zeros((len(self.joints), 3), dtype=np.float64)
        self.anchor = vec3()

    @property
    def joint_count(self) -> int:
        return len(self.joints)

    @property
    def tip(self) -> Any:
        return self.joints[-1]

    @property
    def tip_offset(self) -> Quat:
        """Constant rotation carrying target orientation onto tip orientation."""
        return quat_multiply(self.tip_rest_rotation, quat_inverse(self.target_rest_rotation))

    @property
    def supports_pole(self) -> bool:
        """Pole bias is only defined for chains of 2 or 3 joints."""
        return self.pole is not None and self.joint_count <= MAX_POLE_CHAIN_JOINTS
