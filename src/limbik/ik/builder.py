"""Resolve a ``ChainSpec`` against the host into a solvable ``Chain``.

Chains come either from an explicit joint list or from a root joint plus
a chain length, in which case the hierarchy is walked one unique child at
a time.  Segment lengths, rest directions and rest rotations are captured
here, exactly once per chain.
"""

import logging
from typing import Any, Optional

import numpy as np

from limbik.constants import EPSILON, MIN_CHAIN_JOINTS
from limbik.core.events import EventBus, EventType
from limbik.core.math_utils import as_vec3
from limbik.core.state import SolverSettings
from limbik.ik.chain import Chain, ChainSpec
from limbik.ik.host import TransformHost

logger = logging.getLogger(__name__)


class ChainConfigError(ValueError):
    """A chain description that cannot be turned into a solvable chain."""

    def __init__(self, chain_name: str, message: str):
        super().__init__(f"{chain_name}: {message}")
        self.chain_name = chain_name


class InvalidChainLength(ChainConfigError):
    """Fewer than two joints, or a hierarchy too short for the requested length."""


class AmbiguousChainTopology(ChainConfigError):
    """A joint before the tip has several children; the chain must be listed manually."""


def walk_chain(host: TransformHost, spec: ChainSpec) -> list[Any]:
    """Collect ``spec.chain_length`` joints from ``spec.root`` down single-child links."""
    if spec.chain_length < MIN_CHAIN_JOINTS:
        raise InvalidChainLength(
            spec.name,
            f"chain length must be at least {MIN_CHAIN_JOINTS}, got {spec.chain_length}",
        )

    joints = []
    current = spec.root
    for i in range(spec.chain_length):
        joints.append(current)
        if i == spec.chain_length - 1:
            break
        count = host.get_child_count(current)
        if count > 1:
            raise AmbiguousChainTopology(
                spec.name,
                f"joint {i} has {count} children; list the joints explicitly",
            )
        child = host.get_unique_child(current)
        if child is None:
            raise InvalidChainLength(
                spec.name,
                f"hierarchy ends after {i + 1} joints, {spec.chain_length} requested",
            )
        current = child
    return joints


def resolve_joints(
    host: TransformHost,
    spec: ChainSpec,
    event_bus: Optional[EventBus] = None,
) -> list[Any]:
    """Pick the joint list for *spec*, preferring the root + length description."""
    if spec.root is not None:
        if spec.joints:
            message = (
                "root and joints both given; root takes precedence and the "
                "derived chain may differ from the listed joints"
            )
            logger.warning("Chain %s: %s", spec.name, message)
            if event_bus is not None:
                event_bus.publish(EventType.CONFIG_WARNING, name=spec.name, message=message)
        return walk_chain(host, spec)

    joints = list(spec.joints or [])
    if len(joints) < MIN_CHAIN_JOINTS:
        raise InvalidChainLength(
            spec.name,
            f"need at least {MIN_CHAIN_JOINTS} joints, got {len(joints)}",
        )
    return joints


def build_chain(
    host: TransformHost,
    spec: ChainSpec,
    settings: Optional[SolverSettings] = None,
    event_bus: Optional[EventBus] = None,
) -> Chain:
    """Build a ``Chain`` from *spec* using the host's current pose as rest pose.

    Raises ``ChainConfigError`` subclasses for unusable descriptions.
    """
    if spec.target is None:
        raise ChainConfigError(spec.name, "no target given")

    joints = resolve_joints(host, spec, event_bus)
    settings = (settings or SolverSettings()).override(spec.tolerance, spec.iterations)

    positions = np.array([host.get_world_position(j) for j in joints], dtype=np.float64)
    directions = positions[1:] - positions[:-1]
    lengths = np.linalg.norm(directions, axis=1)

    short = np.flatnonzero(lengths < EPSILON)
    if short.size:
        raise InvalidChainLength(
            spec.name,
            f"joints {int(short[0])} and {int(short[0]) + 1} coincide",
        )

    chain = Chain(
        name=spec.name,
        joints=joints,
        target=spec.target,
        pole=spec.pole,
        segment_lengths=lengths,
        rest_directions=directions,
        rest_rotations=[host.get_world_orientation(j) for j in joints[:-1]],
        tip_rest_rotation=host.get_world_orientation(joints[-1]),
        target_rest_rotation=host.get_world_orientation(spec.target),
        tolerance=settings.tolerance,
        iterations=settings.iterations,
        pole_axis=as_vec3(spec.pole_axis),
    )
    logger.info("Built chain %s: %d joints, length %.4f",
                chain.name, chain.joint_count, chain.total_length)
    return chain
