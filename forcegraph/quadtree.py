class Quad:
    """A quadtree cell.

    Leaves hold one or more coincident points; internal cells hold four
    child slots (NW, NE, SW, SE), any of which may be empty. ``x``, ``y`` and
    ``value`` are left for the caller to fill in (see visit_after).
    """
    __slots__ = ("children", "points", "x", "y", "value")

    def __init__(self, points=None):
        self.children = None
        self.points = points
        self.x = 0.0
        self.y = 0.0
        self.value = 0.0

    @property
    def is_leaf(self):
        return self.children is None


def _quadrant(x, y, x0, y0, x1, y1):
    """Child slot for (x, y) and that child's bounds."""
    xm = (x0 + x1) / 2
    ym = (y0 + y1) / 2
    right = x >= xm
    bottom = y >= ym
    if right:
        x0 = xm
    else:
        x1 = xm
    if bottom:
        y0 = ym
    else:
        y1 = ym
    return (bottom << 1) | right, x0, y0, x1, y1


class Quadtree:
    """Square region quadtree over objects with ``x`` and ``y`` attributes."""

    def __init__(self, points=()):
        points = list(points)
        self.root = None
        if points:
            x0 = min(p.x for p in points)
            y0 = min(p.y for p in points)
            side = max(max(p.x for p in points) - x0, max(p.y for p in points) - y0)
            # Pad so the far edge still falls inside the square
            side = side * 1.0001 if side > 0 else 1.0
            self.extent = (x0, y0, x0 + side, y0 + side)
        else:
            self.extent = (0.0, 0.0, 1.0, 1.0)
        for p in points:
            self.add(p)

    def add(self, point):
        """Inserts a point lying inside ``extent``."""
        x, y = point.x, point.y
        if self.root is None:
            self.root = Quad([point])
            return

        x0, y0, x1, y1 = self.extent
        parent, slot = None, None
        quad = self.root

        # Walk down to the leaf (or empty slot) covering the point
        while not quad.is_leaf:
            i, x0, y0, x1, y1 = _quadrant(x, y, x0, y0, x1, y1)
            parent, slot = quad, i
            quad = quad.children[i]
            if quad is None:
                parent.children[i] = Quad([point])
                return

        other = quad.points[0]
        if other.x == x and other.y == y:
            quad.points.append(point)
            return

        # Split until the new point and the existing leaf land in different cells
        while True:
            if (x0 + x1) / 2 in (x0, x1) and (y0 + y1) / 2 in (y0, y1):
                # Cell can't shrink any further in floating point
                if parent is None:
                    self.root = quad
                else:
                    parent.children[slot] = quad
                quad.points.append(point)
                return
            branch = Quad()
            branch.children = [None, None, None, None]
            if parent is None:
                self.root = branch
            else:
                parent.children[slot] = branch
            j, *_ = _quadrant(other.x, other.y, x0, y0, x1, y1)
            i, x0, y0, x1, y1 = _quadrant(x, y, x0, y0, x1, y1)
            if i != j:
                branch.children[j] = quad
                branch.children[i] = Quad([point])
                return
            parent, slot = branch, i

    def visit(self, callback):
        """Pre-order walk; ``callback(quad, x0, y0, x1, y1)`` returns True to skip children."""
        if self.root is None:
            return
        stack = [(self.root, *self.extent)]
        while stack:
            quad, x0, y0, x1, y1 = stack.pop()
            if callback(quad, x0, y0, x1, y1) or quad.is_leaf:
                continue
            xm = (x0 + x1) / 2
            ym = (y0 + y1) / 2
            bounds = ((x0, y0, xm, ym), (xm, y0, x1, ym), (x0, ym, xm, y1), (xm, ym, x1, y1))
            # Pushed in reverse so children are visited NW, NE, SW, SE
            for child, b in reversed(list(zip(quad.children, bounds))):
                if child is not None:
                    stack.append((child, *b))

    def visit_after(self, callback):
        """Post-order walk: every child is visited before its parent."""
        if self.root is None:
            return
        order = []
        self.visit(lambda quad, *bounds: order.append(quad))
        for quad in reversed(order):
            callback(quad)

    def __len__(self):
        count = 0
        for quad in self.leaves():
            count += len(quad.points)
        return count

    def leaves(self):
        result = []

        def collect(quad, *bounds):
            if quad.is_leaf:
                result.append(quad)

        self.visit(collect)
        return result
