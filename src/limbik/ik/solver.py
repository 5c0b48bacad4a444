"""Per-frame IK driver for every chain of a rig.

The host calls ``IKSolver.update()`` once per rendered frame.  For each
chain the driver reads joint positions from the host, runs FABRIK, applies
the pole bias, and writes positions and rotations back:

1. refresh ``chain.positions`` from the live joints
2. solve toward the target (straight reach if out of range)
3. lean joint 1 toward the pole (2- and 3-joint chains only)
4. commit positions root to tip, bone rotations for joints 0..N-2,
   and the tip rotation from the target with its rest offset

Chains that fail to build are logged, reported on the event bus, and left
out; the remaining chains still run.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from limbik.core.events import EventBus, EventType
from limbik.core.math_utils import distance
from limbik.core.state import ChainStats, SolverSettings
from limbik.ik.builder import ChainConfigError, build_chain
from limbik.ik.chain import Chain, ChainSpec
from limbik.ik.fabrik import joint_rotations, solve_positions, tip_rotation
from limbik.ik.host import TransformHost
from limbik.ik.pole import apply_pole

logger = logging.getLogger(__name__)


class IKSolver:
    """Solves a set of independent chains against one host scene graph."""

    def __init__(
        self,
        host: TransformHost,
        specs: Sequence[ChainSpec] = (),
        settings: Optional[SolverSettings] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.host = host
        self.specs: list[ChainSpec] = list(specs)
        self.settings = settings or SolverSettings()
        self.event_bus = event_bus
        self.chains: list[Chain] = []
        self.rejected: dict[str, ChainConfigError] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> list[Chain]:
        """Build every chain from its spec.  Runs once; later calls are no-ops."""
        if self._initialized:
            return self.chains

        for spec in self.specs:
            try:
                chain = build_chain(self.host, spec, self.settings, self.event_bus)
            except ChainConfigError as e:
                logger.warning("Skipping chain %s: %s", spec.name, e)
                self.rejected[spec.name] = e
                self._publish(EventType.CHAIN_REJECTED, name=spec.name, error=e)
                continue
            self.chains.append(chain)
            self._publish(
                EventType.CHAIN_BUILT,
                name=chain.name,
                joint_count=chain.joint_count,
                total_length=chain.total_length,
            )

        self._initialized = True
        return self.chains

    def update(self) -> list[ChainStats]:
        """Solve every chain for the current frame."""
        if not self._initialized:
            self.initialize()

        stats = [self.solve_chain(chain) for chain in self.chains]
        self._publish(EventType.FRAME_UPDATE, stats=stats)
        return stats

    def solve_chain(self, chain: Chain) -> ChainStats:
        """Run the full read-solve-pole-commit cycle for one chain."""
        host = self.host
        for i, joint in enumerate(chain.joints):
            chain.positions[i] = host.get_world_position(joint)
        chain.anchor[:] = chain.positions[0]
        target = host.get_world_position(chain.target)

        result = solve_positions(
            chain.positions,
            chain.segment_lengths,
            chain.total_length,
            target,
            chain.tolerance,
            chain.iterations,
            anchor=chain.anchor,
        )

        pole_applied = False
        if chain.supports_pole:
            axis = host.transform_local_direction(chain.joints[1], chain.pole_axis)
            pole_applied = apply_pole(
                chain.positions,
                chain.segment_lengths,
                host.get_world_position(chain.pole),
                axis,
            )

        self._commit(chain)
        final_distance = distance(chain.positions[-1], target)

        stats = ChainStats(
            name=chain.name,
            iterations=result.iterations,
            distance=result.distance,
            final_distance=final_distance,
            reached=final_distance <= chain.tolerance,
            out_of_reach=result.out_of_reach,
            pole_applied=pole_applied,
        )
        logger.debug("Chain %s: %d passes, tip %.5f from target%s",
                     chain.name, stats.iterations, stats.final_distance,
                     " (out of reach)" if stats.out_of_reach else "")
        self._publish(EventType.CHAIN_SOLVED, stats=stats)
        return stats

    def _commit(self, chain: Chain) -> None:
        """Write solved positions and derived rotations back to the host."""
        host = self.host
        rotations = joint_rotations(chain.positions, chain.rest_directions, chain.rest_rotations)
        for joint, position, rotation in zip(chain.joints, chain.positions, rotations):
            host.set_world_position(joint, position)
            host.set_world_orientation(joint, rotation)

        host.set_world_position(chain.tip, chain.positions[-1])
        host.set_world_orientation(
            chain.tip,
            tip_rotation(host.get_world_orientation(chain.target), chain.tip_offset),
        )

    def _publish(self, event_type: EventType, **data) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, **data)
