import sys
import logging
import networkx as nx
from PyQt6.QtWidgets import QApplication, QMainWindow, QVBoxLayout, QWidget, QLabel
from PyQt6.QtGui import QAction, QPalette, QColor
from PyQt6.QtCore import Qt

from forcegraph.config import ForceGraphConfig, build_simulation
from forcegraph.graph_model import networkx_records
from forcegraph.ui.graph_widget import GraphWidget, QtFrameTimer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, nx_graph=None, config=None):
        super().__init__()
        self.setWindowTitle("forcegraph - Force-Directed Graph")
        self.resize(960, 640)

        self.config = config or ForceGraphConfig()
        nodes, links = networkx_records(nx_graph if nx_graph is not None else nx.les_miserables_graph())

        # Setup Logic
        self.timer = QtFrameTimer(parent=self)
        self.graph = build_simulation(nodes, links, self.config, scheduler=self.timer)
        self.graph.engine.on_end(self.on_converged)

        # Setup UI
        self.init_ui()
        self.setup_theme()
        self.create_menu()

        self.graph.engine.start()

    def init_ui(self):
        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)

        layout = QVBoxLayout(self.central_widget)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        # Info Bar
        self.info_label = QLabel(self.summary())
        self.info_label.setStyleSheet("padding: 5px; background-color: #252526; color: #ccc; border-bottom: 1px solid #3e3e3e;")
        layout.addWidget(self.info_label)

        self.graph_widget = GraphWidget(self.graph)
        self.graph_widget.node_radius = self.config.node_radius
        self.graph_widget.nodeClicked.connect(self.on_node_clicked)
        layout.addWidget(self.graph_widget)

    def create_menu(self):
        menu = self.menuBar()
        menu.clear()

        file_menu = menu.addMenu("&File")
        exit_action = QAction("E&xit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        sim_menu = menu.addMenu("&Simulation")
        reheat_action = QAction("&Reheat", self)
        reheat_action.setShortcut("Ctrl+R")
        reheat_action.triggered.connect(self.reheat)
        sim_menu.addAction(reheat_action)

        stop_action = QAction("&Stop", self)
        stop_action.triggered.connect(self.graph.engine.stop)
        sim_menu.addAction(stop_action)

        view_menu = menu.addMenu("&View")
        reset_action = QAction("Reset &View", self)
        reset_action.triggered.connect(self.graph_widget.reset_view)
        view_menu.addAction(reset_action)

        labels_action = QAction("Show &Labels", self)
        labels_action.setCheckable(True)
        labels_action.toggled.connect(self.toggle_labels)
        view_menu.addAction(labels_action)

    def setup_theme(self):
        app = QApplication.instance()
        app.setStyle("Fusion")

        palette = QPalette()
        palette.setColor(QPalette.ColorRole.Window, QColor(53, 53, 53))
        palette.setColor(QPalette.ColorRole.WindowText, Qt.GlobalColor.white)
        palette.setColor(QPalette.ColorRole.Base, QColor(25, 25, 25))
        palette.setColor(QPalette.ColorRole.Text, Qt.GlobalColor.white)
        palette.setColor(QPalette.ColorRole.Button, QColor(53, 53, 53))
        palette.setColor(QPalette.ColorRole.ButtonText, Qt.GlobalColor.white)
        palette.setColor(QPalette.ColorRole.Highlight, QColor(42, 130, 218))
        app.setPalette(palette)

    def summary(self):
        model = self.graph.model
        return f"{len(model.nodes)} nodes, {len(model.links)} links"

    def reheat(self):
        self.graph.engine.restart(alpha=1.0)
        self.info_label.setText(self.summary())

    def toggle_labels(self, checked):
        self.graph_widget.show_labels = checked
        self.graph_widget.update()

    def on_node_clicked(self, uid):
        neighbors = sorted(
            str(l.target.id if l.source.id == uid else l.source.id)
            for l in self.graph.model.links
            if uid in (l.source.id, l.target.id)
        )
        self.info_label.setText(f"{uid}: {', '.join(neighbors) or 'no links'}")

    def on_converged(self, snapshot):
        self.info_label.setText(f"{self.summary()} - layout settled")

    def closeEvent(self, event):
        self.graph.engine.invalidate()
        super().closeEvent(event)


def main():
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
