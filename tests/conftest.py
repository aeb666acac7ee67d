import os

import pytest

from forcegraph.graph_engine import GraphEngine
from forcegraph.graph_model import GraphModel

# Qt tests render without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeScheduler:
    """Stands in for a frame timer; fire() plays one frame."""

    def __init__(self):
        self.callback = None
        self.starts = 0
        self.stops = 0

    def start(self, callback):
        self.callback = callback
        self.starts += 1

    def stop(self):
        self.callback = None
        self.stops += 1

    def fire(self, frames=1):
        for _ in range(frames):
            if self.callback:
                self.callback()


@pytest.fixture
def scheduler():
    return FakeScheduler()


def make_engine(nodes, links=(), forces=None, **kwargs):
    model = GraphModel(nodes, links)
    engine = GraphEngine.from_model(model, seed=kwargs.pop("seed", 7), **kwargs)
    for name, force in (forces or {}).items():
        engine.force(name, force)
    return engine


def run_until_stopped(engine, limit=2000):
    ticks = 0
    while engine.running and ticks < limit:
        engine.tick()
        ticks += 1
    return ticks
