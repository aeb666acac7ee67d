import logging
import warnings

from forcegraph.errors import DoubleDragStart, InvalidForceConfiguration
from forcegraph.forces import finite

logger = logging.getLogger(__name__)


class DragController:
    """Pins nodes to the pointer while they are dragged.

    The first drag to start reheats the simulation to ``alpha_target`` so the
    rest of the graph keeps moving around the held node; when the last drag
    ends the target drops back to 0 and the layout settles again. Repeated
    starts overwrite the target rather than stacking it.
    """

    def __init__(self, engine, alpha_target=0.3):
        alpha_target = finite(alpha_target, "drag alpha target")
        if not (0 <= alpha_target <= 1):
            raise InvalidForceConfiguration(f"drag alpha target must be within [0, 1], got {alpha_target!r}")
        self.engine = engine
        self.alpha_target = alpha_target
        self.active = set()  # indices of nodes currently held
        self._raised_target = False

    def drag_start(self, index):
        # Raises IndexError for an unknown node before any state changes
        x, y = self.engine.position(index)
        if index in self.active:
            warnings.warn(f"node {index} is already being dragged; re-pinning", DoubleDragStart,
                          stacklevel=2)
            logger.debug(f"Re-pinning node {index}.")
        elif not self.active:
            self.engine.reheat(self.alpha_target)
            self._raised_target = True

        self.engine.pin(index, x, y)
        self.active.add(index)
        logger.debug(f"Drag start on node {index} at ({x:.1f}, {y:.1f}).")

    def drag_move(self, index, x, y):
        if index not in self.active:
            return
        self.engine.pin(index, x, y)

    def drag_end(self, index):
        if index not in self.active:
            return
        self.active.discard(index)
        self.engine.unpin(index)
        if not self.active and self._raised_target:
            self.engine.settle()
            self._raised_target = False
        logger.debug(f"Drag end on node {index}.")

    @property
    def dragging(self):
        return bool(self.active)
