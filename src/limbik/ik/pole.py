"""Pole bias: lean the first bendable joint toward a pole point.

::

    0-----------1-----------2
                ^ only joint 1 is swung

Joint 1 is swung around an axis through the root, so its distance from
the root (the first bone length) is unchanged.  The axis runs from the
root to a synthetic point one bone length past joint 1 along the joint's
own bone axis; this gives 2-joint chains a usable axis too.  Joints past
joint 1 are then re-hung from it at their bone lengths.
"""

import numpy as np

from limbik.core.math_utils import (
    Vec3, as_vec3, normalize, orthonormalize,
    quat_from_axis_angle, quat_from_to, quat_rotate_vec3,
)
from limbik.ik.fabrik import forward_pass


def synthetic_point(
    positions: np.ndarray,
    segment_lengths: np.ndarray,
    joint1_axis_world: Vec3,
) -> Vec3:
    """Point one bone past joint 1 along its world-space bone axis.

    Uses the second bone's length, or the first bone's when the chain has
    only one bone.
    """
    length = segment_lengths[1] if len(segment_lengths) > 1 else segment_lengths[0]
    return positions[1] + normalize(as_vec3(joint1_axis_world)) * length


def apply_pole(
    positions: np.ndarray,
    segment_lengths: np.ndarray,
    pole_position: Vec3,
    joint1_axis_world: Vec3,
) -> bool:
    """Rotate ``positions[1]`` about the root so the bend faces the pole.

    Both the pole direction and the joint direction are projected onto the
    plane orthogonal to the root-to-synthetic-point axis before measuring
    the bend.  Returns False, leaving positions as they were, when the pole
    or joint lies on the axis and no bend plane exists.
    """
    root = positions[0].copy()
    axis = synthetic_point(positions, segment_lengths, joint1_axis_world) - root

    pole_dir = normalize(as_vec3(pole_position) - root)
    joint_offset = positions[1] - root
    joint_dir = normalize(joint_offset)
    axis = normalize(axis)
    if not axis.any() or not pole_dir.any() or not joint_dir.any():
        return False
    if _on_axis(axis, pole_dir) or _on_axis(axis, joint_dir):
        return False

    axis, pole_dir = orthonormalize(axis, pole_dir)
    axis, joint_dir = orthonormalize(axis, joint_dir)

    if np.dot(joint_dir, pole_dir) < -1.0 + 1e-9:
        # Opposite sides of the plane: half turn about the axis itself
        bend = quat_from_axis_angle(axis, np.pi)
    else:
        bend = quat_from_to(joint_dir, pole_dir)

    positions[1] = quat_rotate_vec3(bend, joint_offset) + root
    forward_pass(positions, segment_lengths, root)
    return True


def _on_axis(axis: Vec3, v: Vec3, eps: float = 1e-9) -> bool:
    return float(np.linalg.norm(np.cross(axis, v))) < eps
