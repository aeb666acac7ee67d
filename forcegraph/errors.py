class ForceGraphError(Exception):
    """Base class for every error raised by forcegraph."""


class UnresolvedEndpoint(ForceGraphError, KeyError):
    """A link names a node identifier that is not in the node collection."""

    def __init__(self, node_id, link_index, end="source"):
        self.node_id = node_id
        self.link_index = link_index
        self.end = end
        super().__init__(node_id)

    def __str__(self):
        return f"link {self.link_index}: {self.end} {self.node_id!r} has no matching node"


class InvalidNodeIdentifier(ForceGraphError, TypeError):
    """A node record yields an identifier that can't be used as a lookup key."""

    def __init__(self, node_id, node_index):
        self.node_id = node_id
        self.node_index = node_index
        super().__init__(f"node {node_index}: identifier {node_id!r} is not hashable")


class InvalidForceConfiguration(ForceGraphError, ValueError):
    """A force parameter is not a finite number."""


class SimulationError(ForceGraphError, RuntimeError):
    """tick() entered while another tick is running, or a restart after invalidate()."""


class DoubleDragStart(UserWarning):
    """drag_start was called for a node that is already being dragged.

    Recoverable: the node is simply re-pinned at its current position.
    """
