import dataclasses
import math

import pytest

from forcegraph.errors import SimulationError
from forcegraph.forces import Force, LinkForce, ManyBodyForce, PositionForce
from forcegraph.graph_engine import ALPHA_DECAY, ALPHA_MIN, GraphEngine, Snapshot, State

from conftest import make_engine, run_until_stopped


def centered_forces():
    return {"charge": ManyBodyForce(), "x": PositionForce("x"), "y": PositionForce("y")}


def test_nodes_seeded_on_a_spiral():
    engine = make_engine([{"id": i} for i in range(20)])
    first = engine.nodes[0]
    assert first.x == pytest.approx(10 * math.sqrt(0.5))
    assert first.y == pytest.approx(0.0)
    positions = {(round(n.x, 6), round(n.y, 6)) for n in engine.nodes}
    assert len(positions) == 20
    assert all(n.vx == 0 and n.vy == 0 for n in engine.nodes)


def test_given_positions_are_kept():
    engine = make_engine([{"id": "a", "x": 4, "y": -2}])
    assert engine.position(0) == (4.0, -2.0)


def test_starts_idle():
    engine = make_engine([{"id": "a"}])
    assert engine.state is State.IDLE
    assert engine.alpha == 1.0
    assert engine.alpha_target == 0.0


def test_alpha_decays_geometrically():
    engine = make_engine([{"id": "a"}])
    engine.start()
    engine.tick()
    assert engine.alpha == pytest.approx(1 - ALPHA_DECAY)
    previous = engine.alpha
    for _ in range(50):
        engine.tick()
        assert engine.alpha < previous
        assert 0 <= engine.alpha <= 1
        previous = engine.alpha


def test_converges_in_bounded_ticks_regardless_of_size():
    counts = []
    for n in (3, 40, 120):
        engine = make_engine([{"id": i} for i in range(n)], forces=centered_forces())
        engine.start()
        counts.append(run_until_stopped(engine))
        assert engine.state is State.STOPPED
        assert engine.alpha < ALPHA_MIN
    assert len(set(counts)) == 1
    assert counts[0] <= 310


def test_end_listener_called_once():
    engine = make_engine([{"id": "a"}])
    ends = []
    engine.on_end(ends.append)
    engine.start()
    run_until_stopped(engine)
    assert len(ends) == 1
    assert isinstance(ends[0], Snapshot)


def test_no_stop_while_target_is_raised():
    engine = make_engine([{"id": "a"}])
    engine.start()
    engine.alpha_target = 0.3
    for _ in range(1000):
        engine.tick()
    assert engine.running
    assert engine.alpha == pytest.approx(0.3)


def test_start_is_resumable(scheduler):
    engine = make_engine([{"id": "a"}], scheduler=scheduler)
    engine.start()
    engine.start()
    assert scheduler.starts == 1
    engine.tick()
    alpha = engine.alpha
    engine.stop()
    assert engine.state is State.STOPPED
    assert scheduler.callback is None
    engine.start()
    assert engine.running
    assert engine.alpha == alpha


def test_scheduler_drives_ticks(scheduler):
    engine = make_engine([{"id": "a"}, {"id": "b"}], scheduler=scheduler)
    seen = []
    engine.on_tick(seen.append)
    engine.start()
    scheduler.fire(5)
    assert len(seen) == 5
    assert all(isinstance(s, Snapshot) for s in seen)
    assert [s.alpha for s in seen] == sorted((s.alpha for s in seen), reverse=True)


def test_frames_ignored_when_not_running(scheduler):
    engine = make_engine([{"id": "a"}], scheduler=scheduler)
    engine.start()
    callback = scheduler.callback
    engine.stop()
    callback()
    assert engine.alpha == 1.0


def test_convergence_releases_scheduler(scheduler):
    engine = make_engine([{"id": "a"}], scheduler=scheduler)
    engine.start()
    scheduler.fire(400)
    assert engine.state is State.STOPPED
    assert scheduler.stops == 1
    assert scheduler.callback is None


def test_invalidate_stops_mid_convergence(scheduler):
    engine = make_engine([{"id": "a"}], scheduler=scheduler)
    seen = []
    engine.on_tick(seen.append)
    engine.start()
    scheduler.fire(3)
    engine.invalidate()
    assert engine.state is State.STOPPED
    assert scheduler.callback is None
    scheduler.fire(3)
    assert len(seen) == 3
    with pytest.raises(SimulationError):
        engine.start()


def test_reheat_restarts_and_overwrites_target(scheduler):
    engine = make_engine([{"id": "a"}], scheduler=scheduler)
    engine.start()
    scheduler.fire(400)
    assert engine.state is State.STOPPED
    low = engine.alpha

    engine.reheat(0.3)
    assert engine.running
    assert engine.alpha_target == 0.3
    engine.reheat(0.5)
    assert engine.alpha_target == 0.5
    engine.tick()
    assert engine.alpha > low


def test_reheat_rejects_out_of_range_target():
    engine = make_engine([{"id": "a"}])
    with pytest.raises(ValueError):
        engine.reheat(1.5)


def test_restart_resets_alpha():
    engine = make_engine([{"id": "a"}])
    engine.start()
    run_until_stopped(engine)
    engine.restart()
    assert engine.alpha == 1.0
    assert engine.running


class ReentrantForce(Force):
    def __init__(self, engine):
        self.engine = engine

    def __call__(self, alpha):
        self.engine.tick()


def test_reentrant_tick_raises():
    engine = make_engine([{"id": "a"}])
    engine.force("bad", ReentrantForce(engine))
    with pytest.raises(SimulationError):
        engine.tick()


def test_snapshot_is_a_detached_copy():
    engine = make_engine([{"id": "a", "x": 1, "y": 2}, {"id": "b", "x": 3, "y": 4}],
                         [{"source": "a", "target": "b"}])
    snapshot = engine.snapshot()
    assert snapshot.nodes[0].id == "a"
    assert (snapshot.links[0].x1, snapshot.links[0].y2) == (1.0, 4.0)
    engine.nodes[0].x = 99
    assert snapshot.nodes[0].x == 1.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.nodes[0].x = 5
    assert isinstance(snapshot.nodes, tuple)


def test_pinned_node_ignores_forces():
    engine = make_engine([{"id": "a", "x": 0, "y": 0}, {"id": "b", "x": 1, "y": 0}],
                         forces=centered_forces())
    engine.pin(0, 50, -20)
    for _ in range(20):
        snapshot = engine.tick()
        assert (snapshot.nodes[0].x, snapshot.nodes[0].y) == (50.0, -20.0)
        assert snapshot.nodes[0].pinned
        assert engine.nodes[0].vx == 0 and engine.nodes[0].vy == 0
    engine.unpin(0)
    assert not engine.is_pinned(0)


def test_spring_converges_monotonically():
    d = 30.0
    engine = make_engine([{"id": "a", "x": -2.5 * d, "y": 0}, {"id": "b", "x": 2.5 * d, "y": 0}],
                         [{"source": "a", "target": "b"}])
    engine.force("link", LinkForce(engine.links, strength=1, distance=d))
    previous = 5 * d
    for _ in range(300):
        snapshot = engine.tick()
        a, b = snapshot.nodes
        separation = math.hypot(b.x - a.x, b.y - a.y)
        assert separation <= previous + 0.01 * d
        previous = separation
    assert previous == pytest.approx(d, rel=0.01)


def test_find_nearest_node():
    engine = make_engine([{"id": "a", "x": 0, "y": 0}, {"id": "b", "x": 10, "y": 0}])
    assert engine.find(8, 1) == 1
    assert engine.find(1, 1) == 0
    assert engine.find(50, 50, radius=5) is None
    assert GraphEngine([]).find(0, 0) is None


def test_invalidated_engine_keeps_its_state(scheduler):
    engine = make_engine([{"id": "a"}], scheduler=scheduler)
    engine.start()
    scheduler.fire(3)
    engine.invalidate()
    alpha, target = engine.alpha, engine.alpha_target
    with pytest.raises(SimulationError):
        engine.restart()
    with pytest.raises(SimulationError):
        engine.reheat(0.5)
    assert (engine.alpha, engine.alpha_target) == (alpha, target)
    assert engine.state is State.STOPPED
