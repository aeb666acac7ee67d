from PyQt6.QtWidgets import QWidget
from PyQt6.QtCore import QObject, QTimer, Qt, QPointF, QRectF, pyqtSignal
from PyQt6.QtGui import QPainter, QColor, QPen, QBrush, QFont, QTransform

import logging

logger = logging.getLogger(__name__)


class QtFrameTimer(QObject):
    """Frame scheduler for GraphEngine backed by a QTimer (~60 FPS)."""

    def __init__(self, interval=16, parent=None):
        super().__init__(parent)
        self.timer = QTimer(self)
        self.timer.setInterval(interval)
        self._callback = None
        self.timer.timeout.connect(self._fire)

    def start(self, callback):
        self._callback = callback
        self.timer.start()

    def stop(self):
        self.timer.stop()
        self._callback = None

    def is_active(self):
        return self.timer.isActive()

    def _fire(self):
        if self._callback:
            self._callback()


class GraphWidget(QWidget):
    nodeClicked = pyqtSignal(object)

    def __init__(self, graph, parent=None):
        super().__init__(parent)
        self.graph = graph
        self.engine = graph.engine
        self.drag = graph.drag

        # Rendering settings
        self.node_radius = 5
        self.node_color = QColor("#4e79a7")
        self.pinned_color = QColor("#f28e2c")
        self.node_stroke = QColor("#ffffff")
        self.edge_color = QColor(153, 153, 153, 153)  # #999 at 0.6 opacity
        self.bg_color = QColor("#121212")
        self.show_labels = False

        # Camera
        self.offset_x = 0
        self.offset_y = 0
        self.scale = 1.0
        self.min_scale = 0.1
        self.max_scale = 5.0

        # Interaction
        self.dragging_index = None
        self.panning = False
        self.last_mouse_pos = QPointF()

        # Latest layout; the engine pushes a fresh one every tick
        self.snapshot = self.engine.snapshot()
        self.engine.on_tick(self.on_tick)

        self.setMouseTracking(True)

    def on_tick(self, snapshot):
        self.snapshot = snapshot
        # Request redraw
        self.update()

    def closeEvent(self, event):
        logger.debug("Graph view closed, invalidating simulation.")
        self.engine.invalidate()
        super().closeEvent(event)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        # Fill Background
        painter.fillRect(self.rect(), self.bg_color)

        # Apply Camera Transform
        transform = QTransform()
        center_x = self.width() / 2
        center_y = self.height() / 2

        transform.translate(center_x + self.offset_x, center_y + self.offset_y)
        transform.scale(self.scale, self.scale)
        painter.setTransform(transform)

        # Draw Edges
        painter.setPen(QPen(self.edge_color, 1.5, Qt.PenStyle.SolidLine, Qt.PenCapStyle.RoundCap))
        for link in self.snapshot.links:
            painter.drawLine(QPointF(link.x1, link.y1), QPointF(link.x2, link.y2))

        # Draw Nodes
        painter.setFont(QFont("Segoe UI", 8))
        r = self.node_radius
        for node in self.snapshot.nodes:
            painter.setBrush(QBrush(self.pinned_color if node.pinned else self.node_color))
            painter.setPen(QPen(self.node_stroke, 1.5))
            rect = QRectF(node.x - r, node.y - r, r * 2, r * 2)
            painter.drawEllipse(rect)

            if self.show_labels:
                painter.setPen(self.node_stroke)
                painter.drawText(QRectF(node.x - 50, node.y + r + 2, 100, 14),
                                 Qt.AlignmentFlag.AlignCenter, str(node.id))

        painter.end()

    def mousePressEvent(self, event):
        mouse_pos = event.position()

        if event.button() == Qt.MouseButton.RightButton:
            self.panning = True
            self.last_mouse_pos = mouse_pos
            self.setCursor(Qt.CursorShape.ClosedHandCursor)

        elif event.button() == Qt.MouseButton.LeftButton:
            world_pos = self.screen_to_world(mouse_pos)
            # Hit radius in world units stays constant on screen
            index = self.engine.find(world_pos.x(), world_pos.y(), (self.node_radius + 2) / self.scale)
            if index is not None:
                self.dragging_index = index
                self.drag.drag_start(index)
                self.setCursor(Qt.CursorShape.PointingHandCursor)
                self.nodeClicked.emit(self.snapshot.nodes[index].id)

    def mouseMoveEvent(self, event):
        mouse_pos = event.position()

        if self.panning:
            delta = mouse_pos - self.last_mouse_pos
            self.offset_x += delta.x()
            self.offset_y += delta.y()
            self.last_mouse_pos = mouse_pos
            self.update()

        elif self.dragging_index is not None:
            world_pos = self.screen_to_world(mouse_pos)
            self.drag.drag_move(self.dragging_index, world_pos.x(), world_pos.y())

    def mouseReleaseEvent(self, event):
        if self.dragging_index is not None:
            self.drag.drag_end(self.dragging_index)
            self.dragging_index = None
        self.panning = False
        self.setCursor(Qt.CursorShape.ArrowCursor)

    def wheelEvent(self, event):
        # Zoom
        angle = event.angleDelta().y()
        factor = 1.1 if angle > 0 else 0.9

        new_scale = self.scale * factor
        if self.min_scale <= new_scale <= self.max_scale:
            self.scale = new_scale
            self.update()

    def screen_to_world(self, screen_pos):
        # screen = (world * scale) + offset + center
        center_x = self.width() / 2
        center_y = self.height() / 2

        wx = (screen_pos.x() - center_x - self.offset_x) / self.scale
        wy = (screen_pos.y() - center_y - self.offset_y) / self.scale
        return QPointF(wx, wy)

    def reset_view(self):
        self.offset_x = 0
        self.offset_y = 0
        self.scale = 1.0
        self.update()
