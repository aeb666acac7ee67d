import logging
import math
import random
import threading
from dataclasses import dataclass
from enum import Enum

from forcegraph.errors import SimulationError
from forcegraph.forces import ForceRegistry

logger = logging.getLogger(__name__)

# Engine-wide constants: alpha goes from 1 to ALPHA_MIN in ~300 ticks
ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4

# Phyllotaxis seeding for nodes without an initial position
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


class State(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class NodePosition:
    index: int
    id: object
    x: float
    y: float
    pinned: bool = False


@dataclass(frozen=True)
class LinkPosition:
    index: int
    source: int
    target: int
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of the layout handed to renderers after each tick."""
    alpha: float
    nodes: tuple
    links: tuple


class GraphEngine:
    """Force-directed layout simulation.

    Owns the node position/velocity table and the alpha "temperature". Each
    tick applies the registered forces scaled by alpha, integrates velocity
    with friction, then lets alpha decay toward alpha_target. Once alpha
    drops below ALPHA_MIN with no target set, a running simulation stops.

    Ticks are driven either manually or by a frame ``scheduler``: any object
    with ``start(callback)`` and ``stop()``, such as the Qt frame timer.
    """

    def __init__(self, nodes, links=(), forces=None, scheduler=None, seed=None):
        self.nodes = list(nodes)
        self.links = list(links)
        self.forces = forces if forces is not None else ForceRegistry()
        self.scheduler = scheduler
        self.random = random.Random(seed)

        self.alpha = 1.0
        self.alpha_target = 0.0
        self.state = State.IDLE

        # Ticks and pin/reheat calls are serialized on this lock
        self._lock = threading.RLock()
        self._ticking = False
        self._invalidated = False
        self._tick_listeners = []
        self._end_listeners = []

        self._initialize_nodes()
        self.forces.initialize(self.nodes, self.random)

    @classmethod
    def from_model(cls, model, **kwargs):
        return cls(model.nodes, model.links, **kwargs)

    def _initialize_nodes(self):
        for i, node in enumerate(self.nodes):
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if math.isnan(node.x) or math.isnan(node.y):
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                node.x = radius * math.cos(angle)
                node.y = radius * math.sin(angle)
            if math.isnan(node.vx) or math.isnan(node.vy):
                node.vx = node.vy = 0.0

    # Forces

    def force(self, name, force=None):
        """Registers ``force`` under ``name``, or returns the force registered there."""
        if force is None:
            return self.forces.get(name)
        with self._lock:
            return self.forces.register(name, force)

    # State machine

    @property
    def running(self):
        return self.state is State.RUNNING

    @property
    def converged(self):
        return self.alpha < ALPHA_MIN and self.alpha_target == 0

    def start(self):
        if self._invalidated:
            raise SimulationError("simulation was invalidated and can't be restarted")
        if self.state is State.RUNNING:
            return
        self.state = State.RUNNING
        if self.scheduler is not None:
            self.scheduler.start(self._on_frame)
        logger.info(f"Simulation started ({len(self.nodes)} nodes, alpha={self.alpha:.3f}).")

    def stop(self):
        if self.state is State.STOPPED:
            return
        self.state = State.STOPPED
        if self.scheduler is not None:
            self.scheduler.stop()
        logger.info(f"Simulation stopped at alpha={self.alpha:.4f}.")

    def reheat(self, target=0.3):
        """Sets alpha_target (overwriting any previous one) and restarts if needed."""
        if not (0 <= target <= 1):
            raise ValueError(f"alpha target must be within [0, 1], got {target!r}")
        if self._invalidated:
            raise SimulationError("simulation was invalidated and can't be restarted")
        with self._lock:
            self.alpha_target = float(target)
        if self.state is not State.RUNNING:
            self.start()

    def settle(self):
        """Drops alpha_target back to 0 so alpha decays toward rest."""
        with self._lock:
            self.alpha_target = 0.0

    def restart(self, alpha=1.0):
        """Resets alpha (clamped to [0, 1]) and resumes ticking."""
        if self._invalidated:
            raise SimulationError("simulation was invalidated and can't be restarted")
        with self._lock:
            self.alpha = min(max(float(alpha), 0.0), 1.0)
        self.start()

    def invalidate(self):
        """Host teardown: stops immediately and releases the frame callback for good."""
        self.stop()
        self._invalidated = True
        self._tick_listeners.clear()
        self._end_listeners.clear()

    def _on_frame(self):
        if self.state is State.RUNNING:
            self.tick()

    # Stepping

    def tick(self):
        """Advances the layout by one step and returns the resulting snapshot."""
        with self._lock:
            if self._ticking:
                raise SimulationError("tick() re-entered while a tick is in progress")
            self._ticking = True
            try:
                self.forces.apply(self.alpha)

                decay = 1 - VELOCITY_DECAY
                for node in self.nodes:
                    if node.fx is None:
                        node.vx *= decay
                        node.x += node.vx
                    else:
                        node.x = node.fx
                        node.vx = 0.0
                    if node.fy is None:
                        node.vy *= decay
                        node.y += node.vy
                    else:
                        node.y = node.fy
                        node.vy = 0.0

                self.alpha += (self.alpha_target - self.alpha) * ALPHA_DECAY
                snapshot = self.snapshot()
            finally:
                self._ticking = False

        for listener in list(self._tick_listeners):
            listener(snapshot)

        if self.state is State.RUNNING and self.converged:
            logger.info("Simulation converged.")
            self.stop()
            for listener in list(self._end_listeners):
                listener(snapshot)
        return snapshot

    def snapshot(self):
        nodes = tuple(
            NodePosition(n.index, n.id, n.x, n.y, n.fx is not None or n.fy is not None)
            for n in self.nodes
        )
        links = tuple(
            LinkPosition(l.index, l.source.index, l.target.index,
                         l.source.x, l.source.y, l.target.x, l.target.y)
            for l in self.links
        )
        return Snapshot(self.alpha, nodes, links)

    def on_tick(self, callback):
        self._tick_listeners.append(callback)
        return callback

    def on_end(self, callback):
        self._end_listeners.append(callback)
        return callback

    # Pinning

    def position(self, index):
        node = self.nodes[index]
        return node.x, node.y

    def pin(self, index, x, y):
        with self._lock:
            node = self.nodes[index]
            node.fx = float(x)
            node.fy = float(y)

    def unpin(self, index):
        with self._lock:
            node = self.nodes[index]
            node.fx = None
            node.fy = None

    def is_pinned(self, index):
        return self.nodes[index].fx is not None

    # Queries

    def find(self, x, y, radius=math.inf):
        """Index of the node closest to (x, y) within ``radius``, or None."""
        closest = None
        best = radius * radius
        for node in self.nodes:
            dx = x - node.x
            dy = y - node.y
            d2 = dx * dx + dy * dy
            if d2 < best:
                closest, best = node.index, d2
        return closest

    @property
    def node_count(self):
        return len(self.nodes)
