"""IK subsystem -- FABRIK chains with pole bias over a host scene graph."""

from limbik.ik.builder import (
    AmbiguousChainTopology,
    ChainConfigError,
    InvalidChainLength,
    build_chain,
)
from limbik.ik.chain import Chain, ChainSpec
from limbik.ik.host import SceneGraphHost, TransformHost
from limbik.ik.solver import IKSolver

__all__ = [
    "AmbiguousChainTopology",
    "Chain",
    "ChainConfigError",
    "ChainSpec",
    "IKSolver",
    "InvalidChainLength",
    "SceneGraphHost",
    "TransformHost",
    "build_chain",
]
