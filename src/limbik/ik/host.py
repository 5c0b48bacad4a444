"""Capability interface the IK core needs from a host scene graph.

Joint, target and pole references are opaque to the solver; only the host
knows what they are.  ``SceneGraphHost`` adapts ``SceneNode`` so the
bundled scene graph can drive the solver directly.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from limbik.core.math_utils import Quat, Vec3, as_vec3
from limbik.core.scene_graph import SceneNode


class TransformHost(Protocol):
    """World-space transform access plus child-topology queries."""

    def get_world_position(self, ref: Any) -> Vec3: ...

    def get_world_orientation(self, ref: Any) -> Quat: ...

    def set_world_position(self, ref: Any, position: Vec3) -> None: ...

    def set_world_orientation(self, ref: Any, orientation: Quat) -> None: ...

    def get_unique_child(self, ref: Any) -> Optional[Any]: ...

    def get_child_count(self, ref: Any) -> int: ...

    def transform_local_direction(self, ref: Any, local_dir: Vec3) -> Vec3: ...


class SceneGraphHost:
    """``TransformHost`` over ``SceneNode`` references."""

    def get_world_position(self, ref: SceneNode) -> Vec3:
        return ref.get_world_position()

    def get_world_orientation(self, ref: SceneNode) -> Quat:
        return ref.get_world_quaternion()

    def set_world_position(self, ref: SceneNode, position: Vec3) -> None:
        ref.set_world_position(as_vec3(position))

    def set_world_orientation(self, ref: SceneNode, orientation: Quat) -> None:
        ref.set_world_quaternion(orientation)

    def get_unique_child(self, ref: SceneNode) -> Optional[SceneNode]:
        """The only child, or None when there are zero or several."""
        return ref.children[0] if len(ref.children) == 1 else None

    def get_child_count(self, ref: SceneNode) -> int:
        return len(ref.children)

    def transform_local_direction(self, ref: SceneNode, local_dir: Vec3) -> Vec3:
        return ref.transform_direction(local_dir)
