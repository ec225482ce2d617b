from __future__ import annotations

from pygame.math import Vector2

from hextrail.sim.core.agent import Agent, Strategy, TurnPreference
from hextrail.sim.core.config import SimulationConfig
from hextrail.sim.core.hexgrid import EAST, NORTH_EAST, SOUTH_EAST, WEST
from hextrail.sim.core.simulator import Simulator
from hextrail.sim.systems.conflicts import IntendedMove, is_head_on, resolve_conflicts


def _agent(agent_id: int, heading: int) -> Agent:
    return Agent(
        id=agent_id,
        position=Vector2(),
        heading=heading,
        strategy=Strategy.WANDERER,
        turn_preference=TurnPreference.RIGHT,
        birth_time=0.0,
    )


def _intent(agent_id: int, heading: int, direction: int, key) -> IntendedMove:
    return IntendedMove(agent=_agent(agent_id, heading), direction=direction, destination=Vector2(key), key=key)


def test_distinct_destinations_are_all_accepted():
    intents = [_intent(0, EAST, EAST, (10, 0)), _intent(1, EAST, SOUTH_EAST, (15, 9))]
    resolution = resolve_conflicts(intents)
    assert resolution.accepted == intents
    assert resolution.deferred == []
    assert resolution.conflicts == 0


def test_first_claimant_in_order_wins():
    first = _intent(0, EAST, SOUTH_EAST, (15, 9))
    second = _intent(1, NORTH_EAST, SOUTH_EAST, (15, 9))
    third = _intent(2, EAST, EAST, (30, 0))
    late = _intent(3, WEST, WEST, (15, 9))
    resolution = resolve_conflicts([first, second, third, late])

    assert resolution.accepted == [first, third]
    assert resolution.deferred == [second, late]
    assert resolution.conflicts == 2
    assert resolution.head_on == []


def test_straight_opposed_pair_is_reported_as_head_on():
    east = _intent(0, EAST, EAST, (20, 0))
    west = _intent(1, WEST, WEST, (20, 0))
    assert is_head_on(east, west)

    resolution = resolve_conflicts([east, west])
    assert resolution.accepted == [east]
    assert resolution.deferred == [west]
    assert resolution.head_on == [(east, west)]

    turning = _intent(1, WEST, NORTH_EAST, (20, 0))
    assert not is_head_on(east, turning)


def test_losing_agent_survives_and_retries_next_tick():
    config = SimulationConfig(
        hex_size=10.0,
        width=100.0,
        height=100.0,
        max_agents=2,
        initial_agents=0,
        spawn_delay=0.0,
        seed=3,
    )
    sim = Simulator(config)
    west_side = sim.population.spawn(
        sim,
        0.0,
        strategy=Strategy.WANDERER,
        position=sim.grid.lattice_point(4, 2),
        heading=EAST,
        turn_preference=TurnPreference.RIGHT,
    )
    east_side = sim.population.spawn(
        sim,
        0.0,
        strategy=Strategy.WANDERER,
        position=sim.grid.lattice_point(4, 4),
        heading=WEST,
        turn_preference=TurnPreference.RIGHT,
    )
    assert west_side is not None and east_side is not None
    start = Vector2(east_side.position)
    contested = sim.grid.canonical_key(sim.grid.lattice_point(4, 3))

    metrics = sim.step(config.step_delay)

    assert metrics.conflicts == 1
    assert metrics.head_on == 1
    assert metrics.moves == 1
    assert metrics.retired == 0
    assert sim.grid.canonical_key(west_side.position) == contested
    assert east_side.alive
    assert east_side.position == start
    assert east_side.heading == WEST
    assert sim.grid.record_at(west_side.position).owner_id == west_side.id
    assert [agent.id for agent in sim.agents] == [west_side.id, east_side.id]
