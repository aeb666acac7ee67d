"""Interactive force-directed graph layout."""

from forcegraph.config import ForceGraph, ForceGraphConfig, build_simulation
from forcegraph.errors import (
    DoubleDragStart, ForceGraphError, InvalidForceConfiguration, InvalidNodeIdentifier, SimulationError,
    UnresolvedEndpoint
)
from forcegraph.forces import ForceRegistry, LinkForce, ManyBodyForce, PositionForce
from forcegraph.graph_engine import GraphEngine, Snapshot, State
from forcegraph.graph_model import GraphModel, Link, Node
from forcegraph.interaction import DragController

__version__ = "0.1.0"
