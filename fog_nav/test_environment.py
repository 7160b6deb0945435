"""
Terrain, Environment and Belief Map Tests
=========================================
"""

import numpy as np
import pytest

from fog_nav.config import Config
from fog_nav.environment import (
    Environment, BeliefMap, UNKNOWN, extract_view,
    UnknownAgentError, InvalidMoveError, EnergyDepletedError, SimulationError
)
from fog_nav.terrain import (
    Terrain, Direction, MapFormatError, parse_map, load_map, save_map, map_to_string
)


def make_env(text, agent_id='Robby', **energy):
    config = Config()
    for key, value in energy.items():
        setattr(config.energy, key, value)
    env = Environment(parse_map(text), config)
    env.add_agent(agent_id)
    return env


# ==================== Map format ====================

def test_parse_map():
    grid_map = parse_map(
        "S.#\n"
        "\n"
        "LC .\n"
        "..T\n"
    )
    assert (grid_map.width, grid_map.height) == (3, 3)
    assert grid_map.start == (0, 0)
    assert grid_map.target == (2, 2)
    assert grid_map.terrain[0, 2] == Terrain.OBSTACLE
    assert grid_map.terrain[1, 0] == Terrain.LAVA
    assert grid_map.chargers() == [(1, 1)]


@pytest.mark.parametrize('text', [
    "",
    "S..\n..\n..T",
    "S.X\n..T",
    "...\n..T",
    "S.S\n..T",
    "S..\n...",
])
def test_parse_map_rejects_bad_input(text):
    with pytest.raises(MapFormatError):
        parse_map(text)


def test_map_file_round_trip(tmp_path):
    text = "S.L\n#C.\n..T\n"
    path = tmp_path / 'maps' / 'small.txt'
    save_map(parse_map(text), path)
    assert path.read_text() == text
    assert np.array_equal(load_map(path).terrain, parse_map(text).terrain)
    assert map_to_string(parse_map(text).terrain) == text


def test_terrain_symbols():
    assert [t.symbol for t in Terrain] == ['.', '#', 'L', 'C', 'S', 'T']
    assert Terrain.from_symbol('C') == Terrain.CHARGER
    assert not Terrain.OBSTACLE.is_traversable()
    assert Terrain.LAVA.is_traversable()
    with pytest.raises(KeyError):
        Terrain.from_symbol('?')


def test_direction_deltas():
    assert Direction.moves() == (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN)
    assert Direction.UP.apply((3, 3)) == (3, 2)
    assert Direction.NONE.apply((3, 3)) == (3, 3)
    assert Direction.from_delta(0, 1) == Direction.DOWN


# ==================== Sensing ====================

def test_local_view_pads_with_obstacles():
    env = make_env("S..\n...\n..T")
    view = env.local_view('Robby', 1)

    assert view.shape == (3, 3)
    assert np.all(view[0, :] == Terrain.OBSTACLE)
    assert np.all(view[:, 0] == Terrain.OBSTACLE)
    assert view[1, 1] == Terrain.START
    assert view[2, 2] == Terrain.EMPTY


def test_local_view_is_a_copy():
    env = make_env("S..\n...\n..T")
    view = env.local_view('Robby', 1)
    view[:] = Terrain.LAVA
    assert env.terrain_at(0, 0) == Terrain.START


def test_extract_view_far_outside_grid():
    grid = np.zeros((2, 2), dtype=np.int8)
    view = extract_view(grid, (10, 10), 1)
    assert np.all(view == Terrain.OBSTACLE)


# ==================== Movement and energy ====================

def test_can_move_to():
    env = make_env("S#.\n...\n..T")
    assert env.can_move_to('Robby', Direction.DOWN)
    assert env.can_move_to('Robby', Direction.NONE)
    assert not env.can_move_to('Robby', Direction.RIGHT)
    assert not env.can_move_to('Robby', Direction.LEFT)
    assert not env.can_move_to('Robby', Direction.UP)


def test_invalid_move_leaves_state_unchanged():
    env = make_env("S#.\n...\n..T")
    with pytest.raises(InvalidMoveError):
        env.move_robot('Robby', Direction.RIGHT)
    assert env.position('Robby') == (0, 0)
    assert env.energy('Robby') == 100


def test_terrain_effects_apply_on_occupied_cell():
    env = make_env("SC.LT", initial_energy=60)

    env.move_robot('Robby', Direction.RIGHT)
    assert env.energy('Robby') == 59  # entering a charger gives nothing yet

    update = env.move_robot('Robby', Direction.RIGHT)
    assert update.terrain_gain == 20
    assert env.energy('Robby') == 78

    env.move_robot('Robby', Direction.RIGHT)
    assert env.energy('Robby') == 77

    update = env.move_robot('Robby', Direction.NONE)
    assert update.terrain_drain == 20
    assert update.move_cost == 0
    assert env.energy('Robby') == 57

    env.move_robot('Robby', Direction.RIGHT)
    assert env.energy('Robby') == 36
    assert env.is_at_target('Robby')


def test_charger_is_capped():
    env = make_env("CS..T")
    env.agent('Robby').x = 0
    update = env.move_robot('Robby', Direction.NONE)
    assert update.terrain_gain == 0
    assert env.energy('Robby') == 100


def test_energy_depletion():
    env = make_env("S...T", initial_energy=1)
    env.move_robot('Robby', Direction.RIGHT)
    assert env.energy('Robby') == 0

    with pytest.raises(EnergyDepletedError):
        env.move_robot('Robby', Direction.RIGHT)
    assert env.position('Robby') == (1, 0)


def test_lava_can_drain_to_zero():
    env = make_env("SL..T", initial_energy=15)
    env.move_robot('Robby', Direction.RIGHT)
    with pytest.raises(EnergyDepletedError):
        env.move_robot('Robby', Direction.RIGHT)
    assert env.energy('Robby') == 0
    assert env.position('Robby') == (1, 0)


def test_unknown_agent():
    env = make_env("S.T")
    with pytest.raises(UnknownAgentError, match="Robot unknown: ghost"):
        env.position('ghost')
    with pytest.raises(SimulationError):
        env.move_robot('ghost', Direction.RIGHT)


def test_duplicate_agent():
    env = make_env("S.T")
    with pytest.raises(ValueError):
        env.add_agent('Robby')


def test_turn_counter():
    config = Config()
    config.simulation.max_turns = 2
    env = Environment(parse_map("S.T"), config)
    assert env.turn() == 0 and not env.is_over()
    env.next_turn()
    env.next_turn()
    assert env.turn() == 2 and env.is_over()


# ==================== Belief map ====================

def test_belief_starts_unknown():
    belief = BeliefMap(4, 3)
    assert belief.known_fraction == 0.0
    assert belief.terrain_at(2, 1) is None
    assert not belief.is_blocked(2, 1)
    assert np.all(belief.as_array() == UNKNOWN)


def test_belief_observe_and_chargers_dedup():
    grid_map = parse_map("S.C.\n#...\n...T")
    belief = BeliefMap.from_dimensions((grid_map.width, grid_map.height))

    found = belief.observe(extract_view(grid_map.terrain, (1, 1), 1), (1, 1), 1)
    assert found == [(2, 0)]
    assert belief.terrain_at(0, 1) == Terrain.OBSTACLE
    assert belief.is_blocked(0, 1)
    assert not belief.is_known(3, 0)

    found = belief.observe(extract_view(grid_map.terrain, (2, 1), 1), (2, 1), 1)
    assert found == []
    assert belief.known_chargers == ((2, 0),)
    assert belief.is_charger((2, 0))


def test_belief_is_monotonic():
    grid_map = parse_map("S.....\n......\n.....T")
    belief = BeliefMap(grid_map.width, grid_map.height)

    fractions = []
    for x in range(grid_map.width):
        belief.observe(extract_view(grid_map.terrain, (x, 1), 1), (x, 1), 1)
        fractions.append(belief.known_fraction)
        assert belief.is_known(0, 0)

    assert fractions == sorted(fractions)
    assert fractions[-1] == 1.0


def test_belief_rejects_wrong_view_shape():
    belief = BeliefMap(5, 5)
    with pytest.raises(ValueError):
        belief.observe(np.zeros((3, 3), dtype=np.int8), (2, 2), 2)


def test_belief_cells_are_read_only():
    belief = BeliefMap(3, 3)
    with pytest.raises(ValueError):
        belief.cells[0, 0] = Terrain.EMPTY


def test_belief_rejects_empty_size():
    with pytest.raises(ValueError):
        BeliefMap(0, 4)


def test_environment_from_map_file():
    from fog_nav.main import MAPS_DIR

    env = Environment.from_file(MAPS_DIR / 'lava_corridor.txt')
    assert env.grid_dimensions() == (7, 3)
    assert env.start() == (1, 1)
    assert env.goal() == (5, 1)
    assert env.terrain_at(3, 1) == Terrain.LAVA
