"""Tests for scene graph module."""

import numpy as np
import pytest

from limbik.core.scene_graph import SceneNode, Scene
from limbik.core.math_utils import (
    vec3, quat_from_axis_angle, quat_multiply, quat_angle,
)


def test_node_hierarchy():
    parent = SceneNode(name="parent")
    child = SceneNode(name="child")
    parent.add(child)
    assert child.parent is parent
    assert child in parent.children


def test_node_reparent():
    p1 = SceneNode(name="p1")
    p2 = SceneNode(name="p2")
    child = SceneNode(name="child")
    p1.add(child)
    p2.add(child)  # Should remove from p1
    assert child.parent is p2
    assert child not in p1.children


def test_world_position_propagation():
    scene = Scene()
    root = SceneNode(name="root")
    root.set_position(10, 0, 0)
    child = SceneNode(name="child")
    child.set_position(5, 0, 0)
    scene.add(root)
    root.add(child)
    np.testing.assert_array_almost_equal(child.get_world_position(), [15, 0, 0])


def test_world_position_is_never_stale():
    root = SceneNode(name="root")
    child = SceneNode(name="child")
    child.set_position(0, 1, 0)
    root.add(child)
    child.get_world_position()
    root.set_quaternion(quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2))
    np.testing.assert_array_almost_equal(child.get_world_position(), [-1, 0, 0])


def test_scale_propagation():
    root = SceneNode(name="root")
    root.scale = vec3(2, 2, 2)
    child = SceneNode(name="child")
    child.set_position(1, 0, 0)
    root.add(child)
    np.testing.assert_array_almost_equal(child.get_world_position(), [2, 0, 0])


def test_world_quaternion_composes_parents():
    qa = quat_from_axis_angle(vec3(0, 0, 1), 0.4)
    qb = quat_from_axis_angle(vec3(1, 0, 0), 0.7)
    root = SceneNode(name="root").set_quaternion(qa)
    child = SceneNode(name="child").set_quaternion(qb)
    root.add(child)
    expected = quat_multiply(qa, qb)
    assert quat_angle(child.get_world_quaternion(), expected) == pytest.approx(0.0, abs=1e-6)


class TestWorldSetters:
    def _pair(self):
        root = SceneNode(name="root")
        root.set_position(1, 2, 3)
        root.set_quaternion(quat_from_axis_angle(vec3(0, 1, 0), 0.9))
        child = SceneNode(name="child")
        child.set_position(0, 1, 0)
        root.add(child)
        return root, child

    def test_set_world_position_round_trip(self):
        _, child = self._pair()
        child.set_world_position(vec3(-4, 0.5, 2))
        np.testing.assert_array_almost_equal(child.get_world_position(), [-4, 0.5, 2])

    def test_set_world_quaternion_round_trip(self):
        _, child = self._pair()
        q = quat_from_axis_angle(vec3(1, 1, 0), 1.3)
        child.set_world_quaternion(q)
        assert quat_angle(child.get_world_quaternion(), q) == pytest.approx(0.0, abs=1e-6)

    def test_moving_parent_carries_child(self):
        root, child = self._pair()
        before = child.get_world_position() - root.get_world_position()
        root.set_world_position(vec3(0, 0, 0))
        after = child.get_world_position() - root.get_world_position()
        np.testing.assert_array_almost_equal(before, after)


def test_transform_direction():
    node = SceneNode(name="n")
    node.set_quaternion(quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2))
    np.testing.assert_array_almost_equal(node.transform_direction(vec3(0, 1, 0)), [-1, 0, 0])
