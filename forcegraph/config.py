import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from forcegraph.forces import DEFAULT_LINK_DISTANCE, LinkForce, ManyBodyForce, PositionForce, finite
from forcegraph.graph_engine import GraphEngine
from forcegraph.graph_model import (
    GraphModel, default_link_source, default_link_target, default_node_id, default_node_position
)
from forcegraph.interaction import DragController

Strength = Union[float, Callable[[Any], float]]


LINK_DISTANCE_PER_ROOT_NODE = 3.0


def default_link_distance(node_radius, node_count=0):
    """Rest length of a link.

    At least three node diameters apart, and growing with the square root of
    the node count so larger graphs spread over a proportionally larger area.
    """
    return max(DEFAULT_LINK_DISTANCE, 6.0 * node_radius,
               LINK_DISTANCE_PER_ROOT_NODE * math.sqrt(node_count))


@dataclass
class ForceGraphConfig:
    # Record accessors
    node_id: Callable[[Any], Any] = default_node_id
    link_source: Callable[[Any], Any] = default_link_source
    link_target: Callable[[Any], Any] = default_link_target
    node_position: Optional[Callable[[Any], Optional[Tuple[float, float]]]] = default_node_position

    # Forces (per-node / per-link callables receive the Node / Link)
    node_strength: Strength = -30.0
    link_strength: Optional[Strength] = None    # None: 1 / min(degree) of the endpoints
    link_distance: Optional[Strength] = None    # None: derived from node_radius
    center_strength: float = 0.1

    # Viewport
    node_radius: float = 5.0
    width: float = 640.0
    height: float = 400.0
    centered: bool = True   # viewport origin at its center, as in a centered viewBox

    # Interaction
    drag_alpha_target: float = 0.3

    seed: Optional[int] = None

    def center(self):
        """Target of the centering forces."""
        if self.centered:
            return 0.0, 0.0
        return self.width / 2, self.height / 2


@dataclass
class ForceGraph:
    model: GraphModel
    engine: GraphEngine
    drag: DragController


def build_simulation(nodes, links=(), config=None, scheduler=None):
    """Builds the graph model, forces, simulation and drag controller.

    Forces are registered in the canonical order charge, link, x, y. Any
    UnresolvedEndpoint or InvalidForceConfiguration surfaces here, before a
    single tick has run.
    """
    config = config or ForceGraphConfig()
    finite(config.node_radius, "node radius")
    finite(config.center_strength, "center strength")

    model = GraphModel(nodes, links, node_id=config.node_id, link_source=config.link_source,
                       link_target=config.link_target, node_position=config.node_position)
    engine = GraphEngine.from_model(model, scheduler=scheduler, seed=config.seed)

    distance = config.link_distance
    if distance is None:
        distance = default_link_distance(config.node_radius, len(model.nodes))
    cx, cy = config.center()

    engine.force("charge", ManyBodyForce(strength=config.node_strength))
    engine.force("link", LinkForce(model.links, strength=config.link_strength, distance=distance))
    engine.force("x", PositionForce("x", target=cx, strength=config.center_strength))
    engine.force("y", PositionForce("y", target=cy, strength=config.center_strength))

    drag = DragController(engine, alpha_target=config.drag_alpha_target)
    return ForceGraph(model, engine, drag)
