"""Tests for chain building from explicit joint lists and root + length."""

import logging

import numpy as np
import pytest

from limbik.core.events import EventBus, EventType
from limbik.core.math_utils import vec3, quat_from_axis_angle, quat_angle, quat_identity
from limbik.core.scene_graph import SceneNode
from limbik.core.state import SolverSettings
from limbik.ik.builder import (
    AmbiguousChainTopology, ChainConfigError, InvalidChainLength, build_chain, walk_chain,
)
from limbik.ik.chain import ChainSpec
from limbik.ik.host import SceneGraphHost


# ── Helpers ───────────────────────────────────────────────────────────

def _make_limb(points, prefix="j") -> list[SceneNode]:
    """Parented joints at the given world points, identity rotations."""
    nodes = []
    prev = None
    for i, p in enumerate(points):
        node = SceneNode(name=f"{prefix}{i}")
        local = np.asarray(p, dtype=np.float64) - (np.asarray(points[i - 1]) if prev is not None else 0.0)
        node.set_position(*local)
        if prev is not None:
            prev.add(node)
        nodes.append(node)
        prev = node
    return nodes


def _target(x=0.0, y=0.0, z=0.0) -> SceneNode:
    return SceneNode(name="target").set_position(x, y, z)


HOST = SceneGraphHost()


# ── Manual setup ──────────────────────────────────────────────────────

class TestManualChain:
    def test_lengths_and_total(self):
        joints = _make_limb([(0, 0, 0), (0, 1, 0), (0, 1, 2)])
        chain = build_chain(HOST, ChainSpec(name="arm", target=_target(), joints=joints))
        np.testing.assert_array_almost_equal(chain.segment_lengths, [1.0, 2.0])
        assert chain.total_length == sum(chain.segment_lengths)
        assert chain.joint_count == 3

    def test_rest_directions_are_raw_vectors(self):
        joints = _make_limb([(0, 0, 0), (0, 3, 0), (4, 3, 0)])
        chain = build_chain(HOST, ChainSpec(name="arm", target=_target(), joints=joints))
        np.testing.assert_array_almost_equal(chain.rest_directions, [[0, 3, 0], [4, 0, 0]])

    def test_rest_rotations_captured(self):
        joints = _make_limb([(0, 0, 0), (0, 1, 0), (0, 2, 0)])
        q = quat_from_axis_angle(vec3(0, 1, 0), 0.6)
        joints[0].set_quaternion(q)
        target = _target(1, 1, 0).set_quaternion(quat_from_axis_angle(vec3(1, 0, 0), 0.2))
        chain = build_chain(HOST, ChainSpec(name="arm", target=target, joints=joints))
        assert len(chain.rest_rotations) == 2
        assert quat_angle(chain.rest_rotations[0], q) == pytest.approx(0.0, abs=1e-6)
        # Child inherits the root twist
        assert quat_angle(chain.tip_rest_rotation, q) == pytest.approx(0.0, abs=1e-6)
        assert quat_angle(chain.target_rest_rotation, target.quaternion) == pytest.approx(0.0, abs=1e-6)

    def test_segment_lengths_are_read_only(self):
        joints = _make_limb([(0, 0, 0), (1, 0, 0)])
        chain = build_chain(HOST, ChainSpec(name="a", target=_target(), joints=joints))
        with pytest.raises(ValueError):
            chain.segment_lengths[0] = 5.0

    def test_scratch_buffer_sized_once(self):
        joints = _make_limb([(0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0)])
        chain = build_chain(HOST, ChainSpec(name="a", target=_target(), joints=joints))
        assert chain.positions.shape == (4, 3)

    def test_unparented_joints_allowed(self):
        a = SceneNode(name="a").set_position(0, 0, 0)
        b = SceneNode(name="b").set_position(0, 0, 2)
        chain = build_chain(HOST, ChainSpec(name="free", target=_target(), joints=[a, b]))
        assert chain.total_length == pytest.approx(2.0)

    @pytest.mark.parametrize("count", [0, 1])
    def test_too_few_joints(self, count):
        joints = _make_limb([(0, 0, 0), (1, 0, 0)])[:count]
        with pytest.raises(InvalidChainLength):
            build_chain(HOST, ChainSpec(name="short", target=_target(), joints=joints))

    def test_coincident_joints_rejected(self):
        joints = _make_limb([(0, 0, 0), (0, 0, 0), (1, 0, 0)])
        with pytest.raises(InvalidChainLength):
            build_chain(HOST, ChainSpec(name="dup", target=_target(), joints=joints))

    def test_missing_target(self):
        joints = _make_limb([(0, 0, 0), (1, 0, 0)])
        with pytest.raises(ChainConfigError):
            build_chain(HOST, ChainSpec(name="t", target=None, joints=joints))


# ── Automatic setup ───────────────────────────────────────────────────

class TestAutomaticChain:
    def test_walks_unique_children(self):
        joints = _make_limb([(0, 0, 0), (0, 1, 0), (0, 2, 0), (0, 3, 0)])
        chain = build_chain(HOST, ChainSpec(name="leg", target=_target(), root=joints[0], chain_length=3))
        assert chain.joints == joints[:3]

    @pytest.mark.parametrize("length", [0, 1, -2])
    def test_invalid_chain_length(self, length):
        joints = _make_limb([(0, 0, 0), (0, 1, 0)])
        with pytest.raises(InvalidChainLength):
            build_chain(HOST, ChainSpec(name="leg", target=_target(), root=joints[0], chain_length=length))

    def test_hierarchy_too_short(self):
        joints = _make_limb([(0, 0, 0), (0, 1, 0)])
        with pytest.raises(InvalidChainLength):
            build_chain(HOST, ChainSpec(name="leg", target=_target(), root=joints[0], chain_length=4))

    def test_branch_before_tip_is_ambiguous(self):
        joints = _make_limb([(0, 0, 0), (0, 1, 0), (0, 2, 0)])
        joints[1].add(SceneNode(name="extra").set_position(1, 0, 0))
        with pytest.raises(AmbiguousChainTopology):
            build_chain(HOST, ChainSpec(name="arm", target=_target(), root=joints[0], chain_length=3))

    def test_branch_at_tip_is_fine(self):
        joints = _make_limb([(0, 0, 0), (0, 1, 0), (0, 2, 0)])
        joints[2].add(SceneNode(name="finger_a").set_position(1, 0, 0))
        joints[2].add(SceneNode(name="finger_b").set_position(-1, 0, 0))
        chain = build_chain(HOST, ChainSpec(name="arm", target=_target(), root=joints[0], chain_length=3))
        assert chain.tip is joints[2]

    def test_walk_chain_returns_refs_in_order(self):
        joints = _make_limb([(0, 0, 0), (1, 0, 0), (2, 0, 0)])
        spec = ChainSpec(name="x", target=_target(), root=joints[0], chain_length=2)
        assert walk_chain(HOST, spec) == joints[:2]

    def test_root_wins_over_joints_with_warning(self, caplog):
        joints = _make_limb([(0, 0, 0), (0, 1, 0), (0, 2, 0)])
        other = _make_limb([(5, 0, 0), (6, 0, 0)], prefix="o")
        bus = EventBus()
        warnings = []
        bus.subscribe(EventType.CONFIG_WARNING, lambda **kw: warnings.append(kw))
        spec = ChainSpec(name="arm", target=_target(), joints=other, root=joints[0], chain_length=3)

        with caplog.at_level(logging.WARNING, logger="limbik.ik.builder"):
            chain = build_chain(HOST, spec, event_bus=bus)

        assert chain.joints == joints
        assert len(warnings) == 1
        assert warnings[0]["name"] == "arm"
        assert "precedence" in caplog.text


# ── Settings ──────────────────────────────────────────────────────────

def test_settings_applied_with_overrides():
    joints = _make_limb([(0, 0, 0), (1, 0, 0)])
    settings = SolverSettings(tolerance=0.02, iterations=7)
    spec = ChainSpec(name="a", target=_target(), joints=joints, iterations=3)
    chain = build_chain(HOST, spec, settings)
    assert chain.tolerance == 0.02
    assert chain.iterations == 3


def test_tip_offset_identity_when_rest_rotations_match():
    joints = _make_limb([(0, 0, 0), (1, 0, 0)])
    chain = build_chain(HOST, ChainSpec(name="a", target=_target(), joints=joints))
    assert quat_angle(chain.tip_offset, quat_identity()) == pytest.approx(0.0, abs=1e-6)
