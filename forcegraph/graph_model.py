import logging
import math
from collections.abc import Mapping

from forcegraph.errors import InvalidNodeIdentifier, UnresolvedEndpoint

logger = logging.getLogger(__name__)


def _field(record, name):
    if isinstance(record, Mapping):
        return record[name]
    return getattr(record, name)


def default_node_id(record):
    """Identifier of a node record: ``record["id"]``, ``record.id``, or the record itself."""
    if isinstance(record, Mapping):
        return record["id"]
    return getattr(record, "id", record)


def default_link_source(record):
    if isinstance(record, (tuple, list)):
        return record[0]
    return _field(record, "source")


def default_link_target(record):
    if isinstance(record, (tuple, list)):
        return record[1]
    return _field(record, "target")


def default_node_position(record):
    """Initial (x, y) of a record if it carries both coordinates, else None."""
    if isinstance(record, Mapping):
        x, y = record.get("x"), record.get("y")
    else:
        x, y = getattr(record, "x", None), getattr(record, "y", None)
    if x is None or y is None:
        return None
    return float(x), float(y)


def networkx_records(nx_graph):
    """Node and link records (plain dicts) for a networkx graph."""
    nodes = [dict(data, id=n) for n, data in nx_graph.nodes(data=True)]
    links = [dict(data, source=u, target=v) for u, v, data in nx_graph.edges(data=True)]
    return nodes, links


class Node:
    __slots__ = ("index", "id", "datum", "x", "y", "vx", "vy", "fx", "fy")

    def __init__(self, index, uid, datum=None):
        self.index = index
        self.id = uid
        self.datum = datum
        self.x = math.nan
        self.y = math.nan
        self.vx = 0.0
        self.vy = 0.0
        # Fixed position, only set while the node is pinned
        self.fx = None
        self.fy = None

    @property
    def pinned(self):
        return self.fx is not None

    def __repr__(self):
        return f"Node({self.index}, {self.id!r}, x={self.x:.2f}, y={self.y:.2f})"


class Link:
    __slots__ = ("index", "source", "target", "datum")

    def __init__(self, index, source, target, datum=None):
        self.index = index
        self.source = source
        self.target = target
        self.datum = datum

    @property
    def is_self_loop(self):
        return self.source is self.target

    def __repr__(self):
        return f"Link({self.index}, {self.source.id!r} -> {self.target.id!r})"


class GraphModel:
    """Normalizes node and link records into indexed nodes and resolved links.

    Nodes are numbered 0..N-1 in input order. Duplicate identifiers each get
    their own node; links resolve to the first node carrying an identifier.
    Raises UnresolvedEndpoint if a link names an identifier with no node.
    """

    def __init__(self, nodes, links=(), node_id=default_node_id,
                 link_source=default_link_source, link_target=default_link_target,
                 node_position=default_node_position):
        self.nodes = []
        self.links = []
        self._index = {}  # id -> first index

        for i, record in enumerate(nodes):
            uid = node_id(record)
            node = Node(i, uid, record)
            position = node_position(record) if node_position else None
            if position is not None:
                node.x, node.y = position
            self.nodes.append(node)
            try:
                self._index.setdefault(uid, i)
            except TypeError:
                logger.error(f"Node {i} has unhashable identifier {uid!r}.")
                raise InvalidNodeIdentifier(uid, i) from None

        for i, record in enumerate(links):
            source = self._resolve(link_source(record), i, "source")
            target = self._resolve(link_target(record), i, "target")
            self.links.append(Link(i, source, target, record))

        logger.info(f"Built graph with {len(self.nodes)} nodes and {len(self.links)} links.")

    def _resolve(self, uid, link_index, end):
        try:
            index = self._index.get(uid)
        except TypeError:
            # Unhashable, so no node can carry it
            index = None
        if index is None:
            logger.error(f"Link {link_index} {end} {uid!r} does not match any node.")
            raise UnresolvedEndpoint(uid, link_index, end)
        return self.nodes[index]

    @classmethod
    def from_networkx(cls, nx_graph, **kwargs):
        """Builds a model from a networkx graph; node attributes become the datum."""
        nodes, links = networkx_records(nx_graph)
        return cls(nodes, links, **kwargs)

    def index_of(self, uid):
        """First index carrying ``uid``; raises KeyError if absent."""
        return self._index[uid]

    def __len__(self):
        return len(self.nodes)
