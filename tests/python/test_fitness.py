from __future__ import annotations

from collections import Counter

from pytest import approx

from hextrail.sim.core.agent import Strategy
from hextrail.sim.core.config import SimulationConfig
from hextrail.sim.core.rng import DeterministicRng
from hextrail.sim.core.simulator import Simulator
from hextrail.sim.systems.fitness import STRATEGY_ORDER, FitnessTracker


def test_unrecorded_strategies_weigh_one():
    tracker = FitnessTracker()
    assert tracker.weights() == {kind: 1.0 for kind in STRATEGY_ORDER}
    assert tracker[Strategy.SPIRAL].combined == 0.0


def test_combined_score_favours_cells_and_weight_is_its_square():
    tracker = FitnessTracker()
    tracker.record(Strategy.EXPLORER, lifetime=3.0, distance=200.0, cells=4)
    tracker.record(Strategy.EXPLORER, lifetime=1.0, distance=0.0, cells=2)
    stats = tracker[Strategy.EXPLORER]

    assert stats.count == 2
    assert stats.average_cells == approx(3.0)
    assert stats.average_lifetime == approx(2.0)
    assert stats.average_distance == approx(100.0)
    assert stats.combined == approx(2 * 3.0 + 2.0 + 1.0)
    assert stats.weight == approx(81.0)


def test_selection_follows_weights_without_mutation():
    tracker = FitnessTracker()
    tracker.record(Strategy.WALL_FOLLOWER, lifetime=1.0, distance=0.0, cells=1)
    assert tracker.weights()[Strategy.WALL_FOLLOWER] == approx(9.0)

    rng = DeterministicRng(2024)
    draws = 20000
    counts = Counter(tracker.select(rng, 0.0) for _ in range(draws))
    assert counts[Strategy.WALL_FOLLOWER] / draws == approx(0.75, abs=0.02)
    for kind in STRATEGY_ORDER[1:]:
        assert counts[kind] / draws == approx(1.0 / 12.0, abs=0.02)


def test_full_mutation_draws_uniformly():
    tracker = FitnessTracker()
    tracker.record(Strategy.WALL_FOLLOWER, lifetime=50.0, distance=5000.0, cells=100)
    rng = DeterministicRng(8)
    draws = 20000
    counts = Counter(tracker.select(rng, 1.0) for _ in range(draws))
    for kind in STRATEGY_ORDER:
        assert counts[kind] / draws == approx(0.25, abs=0.02)


def test_export_is_keyed_by_strategy_name():
    tracker = FitnessTracker()
    tracker.record(Strategy.WANDERER, lifetime=2.0, distance=100.0, cells=3)
    exported = tracker.export()
    assert list(exported) == ["wall-follower", "wanderer", "explorer", "spiral"]
    assert exported["wanderer"]["count"] == 1
    assert exported["wanderer"]["weight"] == approx((6.0 + 2.0 + 1.0) ** 2)
    assert exported["spiral"]["weight"] == 1.0

    tracker.reset()
    assert tracker[Strategy.WANDERER].count == 0


def test_fitness_grows_only_with_the_agents_retired_that_tick():
    config = SimulationConfig(
        hex_size=10.0,
        width=60.0,
        height=50.0,
        max_agents=3,
        initial_agents=3,
        spawn_delay=0.0,
        seed=21,
    )
    sim = Simulator(config)
    previous = {kind: sim.fitness[kind].count for kind in STRATEGY_ORDER}
    saw_retirement = False
    for tick in range(1, 401):
        retiring = {agent.id: agent.strategy for agent in sim.agents}
        metrics = sim.step(tick * config.step_delay)
        gone = [kind for agent_id, kind in retiring.items() if sim.population.get(agent_id) is None]
        current = {kind: sim.fitness[kind].count for kind in STRATEGY_ORDER}
        expected = Counter(gone)
        for kind in STRATEGY_ORDER:
            assert current[kind] - previous[kind] == expected[kind]
        assert metrics.retired == len(gone)
        saw_retirement = saw_retirement or bool(gone)
        previous = current
    assert saw_retirement
