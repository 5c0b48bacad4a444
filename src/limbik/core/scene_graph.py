"""Scene graph with hierarchical transforms.

Serves as the reference host for the IK solver: every node exposes its
world position and orientation for reading and writing, and the
parent/child topology the chain builder walks.
"""

from typing import Optional

import numpy as np

from limbik.core.math_utils import (
    Mat4, Vec3, Quat,
    as_vec3, mat4_identity, mat4_compose, mat4_inverse,
    quat_identity, quat_multiply, quat_inverse, quat_normalize,
    quat_rotate_vec3, transform_point, vec3,
)


class SceneNode:
    """A node in the scene graph hierarchy.

    Local transform is position, quaternion, scale.  World transforms are
    composed from the ancestor chain on every read, never cached.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.parent: Optional["SceneNode"] = None
        self.children: list["SceneNode"] = []

        # Transform
        self.position: Vec3 = vec3()
        self.quaternion: Quat = quat_identity()
        self.scale: Vec3 = vec3(1, 1, 1)

        self.local_matrix: Mat4 = mat4_identity()
        self._matrix_dirty: bool = True

    def __repr__(self) -> str:
        return f"SceneNode({self.name!r})"

    def add(self, child: "SceneNode") -> "SceneNode":
        """Add a child node. Removes from previous parent if any."""
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return self

    def remove(self, child: "SceneNode") -> "SceneNode":
        """Remove a child node."""
        if child in self.children:
            self.children.remove(child)
            child.parent = None
        return self

    def set_position(self, x: float, y: float, z: float) -> "SceneNode":
        self.position = vec3(x, y, z)
        self._matrix_dirty = True
        return self

    def set_quaternion(self, q: Quat) -> "SceneNode":
        self.quaternion = quat_normalize(np.asarray(q, dtype=np.float64))
        self._matrix_dirty = True
        return self

    def update_local_matrix(self) -> None:
        """Recompute local matrix from position, quaternion, scale."""
        self.local_matrix = mat4_compose(self.position, self.quaternion, self.scale)
        self._matrix_dirty = False

    def compute_world_matrix(self) -> Mat4:
        """World matrix computed fresh from the ancestor chain.

        Safe to call between writes to ancestors within one frame.
        """
        if self._matrix_dirty:
            self.update_local_matrix()
        if self.parent is None:
            return self.local_matrix.copy()
        return self.parent.compute_world_matrix() @ self.local_matrix

    # ── World-space access ──

    def get_world_position(self) -> Vec3:
        """World position of this node's origin."""
        return self.compute_world_matrix()[:3, 3].copy()

    def get_world_quaternion(self) -> Quat:
        """World orientation, composed from local quaternions up the hierarchy."""
        q = self.quaternion
        node = self.parent
        while node is not None:
            q = quat_multiply(node.quaternion, q)
            node = node.parent
        return quat_normalize(q)

    def set_world_position(self, p: Vec3) -> "SceneNode":
        """Move this node so its origin lands at world point *p*."""
        p = as_vec3(p)
        if self.parent is not None:
            p = transform_point(mat4_inverse(self.parent.compute_world_matrix()), p)
        return self.set_position(p[0], p[1], p[2])

    def set_world_quaternion(self, q: Quat) -> "SceneNode":
        """Rotate this node so its world orientation equals *q*."""
        q = np.asarray(q, dtype=np.float64)
        if self.parent is not None:
            q = quat_multiply(quat_inverse(self.parent.get_world_quaternion()), q)
        return self.set_quaternion(q)

    def transform_direction(self, local_dir: Vec3) -> Vec3:
        """Rotate a local-space direction into world space (scale ignored)."""
        return quat_rotate_vec3(self.get_world_quaternion(), as_vec3(local_dir))


class Scene(SceneNode):
    """Root scene node."""

    def __init__(self):
        super().__init__(name="scene")
