"""Force contributors and the registry that applies them.

Every force works on the live node table owned by the simulation: it is
initialized once against the nodes (that is where strengths get evaluated
and validated) and is then called once per tick with the current alpha,
adding velocity deltas to the nodes it affects. Pinned nodes are treated
like any other node here; pinning only matters during integration.
"""
import logging
import math

from forcegraph.errors import InvalidForceConfiguration
from forcegraph.quadtree import Quadtree

logger = logging.getLogger(__name__)

DEFAULT_LINK_DISTANCE = 30.0
JIGGLE = 1e-6
MIN_DISTANCE = 1e-9


def finite(value, what):
    """Returns ``value`` as a float, raising InvalidForceConfiguration if it isn't finite."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidForceConfiguration(f"{what} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise InvalidForceConfiguration(f"{what} must be finite, got {value!r}")
    return number


def _strategy(value, what):
    # Callables are checked per node/link when the force is initialized
    if callable(value):
        return value
    return finite(value, what)


def _evaluate(value, item, what):
    if callable(value):
        return finite(value(item), what)
    return value


class Force:
    nodes = ()
    rng = None

    def initialize(self, nodes, rng):
        self.nodes = nodes
        self.rng = rng

    def jiggle(self):
        return (self.rng.random() - 0.5) * JIGGLE

    def __call__(self, alpha):
        raise NotImplementedError


class ManyBodyForce(Force):
    """Pairwise inverse-distance repulsion (or attraction for positive strength).

    Uses the Barnes-Hut approximation: a quadtree cell whose width over its
    distance is below ``theta`` acts as a single body at the strength-weighted
    centroid of its points.
    """

    def __init__(self, strength=-30.0, theta=0.9, distance_min=1.0, distance_max=math.inf):
        self.strength = _strategy(strength, "charge strength")
        self.theta = finite(theta, "theta")
        if self.theta <= 0:
            raise InvalidForceConfiguration(f"theta must be positive, got {theta!r}")
        self.distance_min = finite(distance_min, "distance_min")
        if distance_max != math.inf:
            distance_max = finite(distance_max, "distance_max")
        self.distance_max = distance_max
        self.strengths = []

    def initialize(self, nodes, rng):
        super().initialize(nodes, rng)
        self.strengths = [_evaluate(self.strength, node, "charge strength") for node in nodes]

    def __call__(self, alpha):
        if not self.nodes:
            return
        tree = Quadtree(self.nodes)
        tree.visit_after(self._accumulate)
        for node in self.nodes:
            tree.visit(self._visitor(node, alpha))

    def _accumulate(self, quad):
        if quad.is_leaf:
            first = quad.points[0]
            quad.x, quad.y = first.x, first.y
            quad.value = sum(self.strengths[p.index] for p in quad.points)
            return

        value = weight = x = y = 0.0
        for child in quad.children:
            if child is None:
                continue
            c = abs(child.value)
            value += child.value
            weight += c
            x += c * child.x
            y += c * child.y
        quad.value = value
        if weight:
            quad.x = x / weight
            quad.y = y / weight

    def _visitor(self, node, alpha):
        theta2 = self.theta * self.theta
        min2 = self.distance_min * self.distance_min
        max2 = self.distance_max * self.distance_max

        def apply(quad, x0, y0, x1, y1):
            if not quad.value:
                return True

            dx = quad.x - node.x
            dy = quad.y - node.y
            w = x1 - x0
            l = dx * dx + dy * dy

            # Far enough away: the whole cell acts as one body
            if w * w / theta2 < l:
                if l < max2:
                    if l < min2:
                        l = math.sqrt(min2 * l)
                    node.vx += dx * quad.value * alpha / l
                    node.vy += dy * quad.value * alpha / l
                return True

            if not quad.is_leaf or l >= max2:
                return False

            # Nearby leaf: exact contribution of each point except the node itself
            if quad.points[0] is not node or len(quad.points) > 1:
                if l == 0:
                    dx, dy = self.jiggle(), self.jiggle()
                    l = max(dx * dx + dy * dy, MIN_DISTANCE * MIN_DISTANCE)
                if l < min2:
                    l = math.sqrt(min2 * l)

            for point in quad.points:
                if point is not node:
                    k = self.strengths[point.index] * alpha / l
                    node.vx += dx * k
                    node.vy += dy * k
            return False

        return apply


class LinkForce(Force):
    """Springs pulling each link's endpoints toward ``distance`` apart.

    Default strength is ``1 / min(degree(source), degree(target))`` so hubs
    aren't yanked around by their many links. The correction is split
    between the endpoints by degree: the less connected end moves more.
    """

    def __init__(self, links=(), strength=None, distance=DEFAULT_LINK_DISTANCE, iterations=1):
        self.links = list(links)
        self.strength = None if strength is None else _strategy(strength, "link strength")
        self.distance = _strategy(distance, "link distance")
        if int(iterations) < 1:
            raise InvalidForceConfiguration(f"iterations must be at least 1, got {iterations!r}")
        self.iterations = int(iterations)
        self.strengths = []
        self.distances = []
        self.bias = []

    def initialize(self, nodes, rng):
        super().initialize(nodes, rng)
        count = [0] * len(nodes)
        for link in self.links:
            if link.is_self_loop:
                continue
            count[link.source.index] += 1
            count[link.target.index] += 1

        self.bias = []
        self.strengths = []
        self.distances = []
        for link in self.links:
            s, t = count[link.source.index], count[link.target.index]
            self.bias.append(s / (s + t) if s + t else 0.5)
            if self.strength is None:
                self.strengths.append(1 / min(s, t) if min(s, t) else 0.0)
            else:
                self.strengths.append(_evaluate(self.strength, link, "link strength"))
            self.distances.append(_evaluate(self.distance, link, "link distance"))

    def __call__(self, alpha):
        for _ in range(self.iterations):
            for i, link in enumerate(self.links):
                source, target = link.source, link.target
                if source is target:
                    continue

                dx = target.x + target.vx - source.x - source.vx
                dy = target.y + target.vy - source.y - source.vy
                if dx == 0 and dy == 0:
                    dx, dy = self.jiggle(), self.jiggle()
                l = max(math.hypot(dx, dy), MIN_DISTANCE)

                l = (l - self.distances[i]) / l * alpha * self.strengths[i]
                dx *= l
                dy *= l
                b = self.bias[i]
                target.vx -= dx * b
                target.vy -= dy * b
                source.vx += dx * (1 - b)
                source.vy += dy * (1 - b)


class PositionForce(Force):
    """Pulls every node toward ``target`` along one axis ("x" or "y")."""

    def __init__(self, axis, target=0.0, strength=0.1):
        if axis not in ("x", "y"):
            raise InvalidForceConfiguration(f"axis must be 'x' or 'y', got {axis!r}")
        self.axis = axis
        self.target = _strategy(target, f"{axis} target")
        self.strength = _strategy(strength, f"{axis} strength")
        self.targets = []
        self.strengths = []

    def initialize(self, nodes, rng):
        super().initialize(nodes, rng)
        self.targets = [_evaluate(self.target, node, f"{self.axis} target") for node in nodes]
        self.strengths = [_evaluate(self.strength, node, f"{self.axis} strength") for node in nodes]

    def __call__(self, alpha):
        if self.axis == "x":
            for node in self.nodes:
                node.vx += (self.targets[node.index] - node.x) * self.strengths[node.index] * alpha
        else:
            for node in self.nodes:
                node.vy += (self.targets[node.index] - node.y) * self.strengths[node.index] * alpha


class ForceRegistry:
    """Named forces, applied in registration order.

    Re-registering a name replaces the force but keeps its original slot.
    Forces are initialized against the node table as soon as both are known,
    so a bad strength fails at registration, never during a tick.
    """

    def __init__(self):
        self._forces = {}
        self._nodes = None
        self._rng = None

    def initialize(self, nodes, rng):
        self._nodes = nodes
        self._rng = rng
        for force in self._forces.values():
            force.initialize(nodes, rng)

    def register(self, name, force):
        if self._nodes is not None:
            force.initialize(self._nodes, self._rng)
        self._forces[name] = force
        logger.debug(f"Registered force '{name}' ({type(force).__name__}).")
        return force

    def remove(self, name):
        return self._forces.pop(name, None)

    def get(self, name):
        return self._forces.get(name)

    def names(self):
        return list(self._forces)

    def apply(self, alpha):
        for force in self._forces.values():
            force(alpha)

    def __contains__(self, name):
        return name in self._forces

    def __iter__(self):
        return iter(self._forces.items())

    def __len__(self):
        return len(self._forces)
