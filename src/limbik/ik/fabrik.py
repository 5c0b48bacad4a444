"""FABRIK (Forward And Backward Reaching IK) position solver.

All functions work in place on an (N, 3) array of world positions, root
first.  Each pass re-places every joint at its fixed segment length from
the neighbour placed just before it, so bone lengths are preserved exactly
while the chain is pulled toward the target (backward pass) and then
pinned back to its root (forward pass).

This module has no scene-graph imports; it only sees NumPy arrays.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from limbik.core.math_utils import (
    Quat, Vec3, as_vec3, distance, normalize, quat_from_to, quat_multiply, vec3,
)

# Used when two joints coincide and a segment has no direction
_FALLBACK_DIRECTION = vec3(0, 1, 0)


@dataclass
class FabrikResult:
    iterations: int        # passes run this frame
    distance: float        # final tip-to-target distance
    out_of_reach: bool


def _place(anchor: Vec3, toward: Vec3, length: float) -> Vec3:
    """Point at *length* from *anchor* in the direction of *toward*."""
    d = normalize(toward - anchor)
    if not d.any():
        d = _FALLBACK_DIRECTION
    return anchor + d * length


def reach_straight(positions: np.ndarray, segment_lengths: np.ndarray, target: Vec3) -> None:
    """Lay the chain out on the ray from the root toward *target*."""
    direction = normalize(as_vec3(target) - positions[0])
    if not direction.any():
        direction = _FALLBACK_DIRECTION
    for i in range(1, len(positions)):
        positions[i] = positions[i - 1] + direction * segment_lengths[i - 1]


def backward_pass(positions: np.ndarray, segment_lengths: np.ndarray, target: Vec3) -> None:
    """Put the tip on the target and drag each joint after it, tip to root."""
    positions[-1] = target
    for i in range(len(positions) - 2, -1, -1):
        positions[i] = _place(positions[i + 1], positions[i], segment_lengths[i])


def forward_pass(positions: np.ndarray, segment_lengths: np.ndarray, anchor: Vec3) -> None:
    """Re-pin the root to *anchor* and drag each joint after it, root to tip."""
    positions[0] = anchor
    for i in range(1, len(positions)):
        positions[i] = _place(positions[i - 1], positions[i], segment_lengths[i - 1])


def solve_positions(
    positions: np.ndarray,
    segment_lengths: np.ndarray,
    total_length: float,
    target: Vec3,
    tolerance: float,
    iterations: int,
    anchor: Optional[np.ndarray] = None,
) -> FabrikResult:
    """Move *positions* toward *target* for one frame.

    Out of reach, the chain is stretched straight at the target.  In reach,
    backward/forward passes run until the tip is within *tolerance* or
    *iterations* passes have been spent; a chain already within tolerance
    is left untouched.  Running out of passes is not an error, the chain
    keeps the closest pose found.

    *anchor*, when given, is the (3,) buffer that receives the root position
    at the start of every pass.
    """
    target = as_vec3(target)

    if distance(positions[0], target) > total_length:
        reach_straight(positions, segment_lengths, target)
        return FabrikResult(0, distance(positions[-1], target), True)

    if anchor is None:
        anchor = np.empty(3, dtype=np.float64)

    passes = 0
    dist = distance(positions[-1], target)
    while dist > tolerance and passes < iterations:
        anchor[:] = positions[0]
        backward_pass(positions, segment_lengths, target)
        forward_pass(positions, segment_lengths, anchor)
        passes += 1
        dist = distance(positions[-1], target)

    return FabrikResult(passes, dist, False)


def joint_rotations(
    positions: np.ndarray,
    rest_directions: np.ndarray,
    rest_rotations: list[Quat],
) -> list[Quat]:
    """World orientations for joints 0..N-2 from their solved bone directions.

    Each joint keeps its rest orientation, turned by the shortest arc that
    takes its rest bone direction onto the solved one.
    """
    rotations = []
    for i in range(len(positions) - 1):
        bend = quat_from_to(rest_directions[i], positions[i + 1] - positions[i])
        rotations.append(quat_multiply(bend, rest_rotations[i]))
    return rotations


def tip_rotation(target_rotation: Quat, tip_offset: Quat) -> Quat:
    """Tip orientation following the target, keeping the rest-pose offset."""
    return quat_multiply(target_rotation, tip_offset)
