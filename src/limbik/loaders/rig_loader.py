"""Build a scene graph and chain specs from a JSON rig description.

Rig format::

    {
      "solver": {"tolerance": 0.01, "iterations": 10},
      "nodes": [
        {"name": "shoulder", "position": [0, 0, 0]},
        {"name": "elbow", "parent": "shoulder", "position": [0, 1, 0],
         "rotation": [0, 0, 0]},
        ...
      ],
      "chains": [
        {"name": "arm", "root": "shoulder", "chain_length": 3,
         "target": "hand_target", "pole": "elbow_pole"}
      ]
    }

Node positions are local to the parent; rotations are XYZ Euler angles in
degrees.  Nodes may be listed in any order.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from limbik.constants import DEFAULT_POLE_AXIS
from limbik.core.config_loader import load_rig_config
from limbik.core.math_utils import deg_to_rad, quat_from_euler
from limbik.core.scene_graph import Scene, SceneNode
from limbik.core.state import SolverSettings
from limbik.ik.chain import ChainSpec

logger = logging.getLogger(__name__)


@dataclass
class Rig:
    """A loaded rig: scene, named nodes, chain specs and solver settings."""
    scene: Scene
    nodes: dict[str, SceneNode]
    specs: list[ChainSpec]
    settings: SolverSettings


def build_scene(node_defs: list[dict]) -> tuple[Scene, dict[str, SceneNode]]:
    """Create and parent ``SceneNode``s from node definitions."""
    scene = Scene()
    nodes: dict[str, SceneNode] = {}

    for d in node_defs:
        name = d.get("name")
        if not name:
            raise ValueError(f"Rig node without a name: {d}")
        if name in nodes:
            raise ValueError(f"Duplicate rig node name: {name}")
        node = SceneNode(name=name)
        node.set_position(*_triple(d.get("position"), name, "position"))
        rx, ry, rz = _triple(d.get("rotation"), name, "rotation")
        node.set_quaternion(quat_from_euler(deg_to_rad(rx), deg_to_rad(ry), deg_to_rad(rz)))
        nodes[name] = node

    for d in node_defs:
        node = nodes[d["name"]]
        parent_name = d.get("parent")
        if parent_name is None:
            scene.add(node)
        else:
            parent = nodes.get(parent_name)
            if parent is None:
                raise ValueError(f"Node {node.name}: unknown parent {parent_name!r}")
            parent.add(node)

    return scene, nodes


def chain_spec_from_dict(d: dict, nodes: dict[str, SceneNode]) -> ChainSpec:
    """Turn one chain definition into a ``ChainSpec`` with node references."""
    name = d.get("name") or "chain"
    joints = d.get("joints")
    return ChainSpec(
        name=name,
        target=_lookup(nodes, d.get("target"), name, "target", required=True),
        pole=_lookup(nodes, d.get("pole"), name, "pole"),
        joints=[_lookup(nodes, j, name, "joint", required=True) for j in joints] if joints else None,
        root=_lookup(nodes, d.get("root"), name, "root"),
        chain_length=_number(d.get("chain_length"), name, "chain_length", int, 0),
        tolerance=_number(d.get("tolerance"), name, "tolerance", float),
        iterations=_number(d.get("iterations"), name, "iterations", int),
        pole_axis=tuple(_triple(d.get("pole_axis"), name, "pole_axis", DEFAULT_POLE_AXIS)),
    )


def rig_from_dict(data: dict) -> Rig:
    scene, nodes = build_scene(data.get("nodes") or [])
    specs = [chain_spec_from_dict(d, nodes) for d in data.get("chains") or []]
    settings = SolverSettings.from_dict(data.get("solver") or {})
    logger.info("Loaded rig: %d nodes, %d chains", len(nodes), len(specs))
    return Rig(scene=scene, nodes=nodes, specs=specs, settings=settings)


def load_rig(name: str | Path) -> Rig:
    """Load a rig from a path or from a file name in assets/config/rigs/."""
    return rig_from_dict(load_rig_config(name))


def _lookup(
    nodes: dict[str, SceneNode],
    node_name: Optional[str],
    chain_name: str,
    role: str,
    required: bool = False,
) -> Optional[SceneNode]:
    if node_name is None:
        if required:
            raise ValueError(f"Chain {chain_name}: missing {role}")
        return None
    node = nodes.get(node_name)
    if node is None:
        raise ValueError(f"Chain {chain_name}: unknown {role} node {node_name!r}")
    return node


def _triple(value: Any, owner: str, key: str,
            default: tuple[float, float, float] = (0.0, 0.0, 0.0)) -> tuple[float, float, float]:
    if value is None:
        return default
    if not isinstance(value, (list, tuple)) or len(value) != 3 or None in value:
        raise ValueError(f"{owner}: {key} must have 3 components, got {value!r}")
    x, y, z = (_number(v, owner, key, float) for v in value)
    return x, y, z


def _number(value: Any, owner: str, key: str, kind: type, default: Any = None) -> Any:
    """Convert a JSON scalar with *kind*; null means *default*."""
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{owner}: {key} must be a number, got {value!r}")
    try:
        return kind(value)
    except ValueError:
        raise ValueError(f"{owner}: {key} must be a number, got {value!r}") from None
