"""Tests for game_logic: config, grid arithmetic, movement, food and collisions."""

from __future__ import annotations

from collections import deque
import logging
import random

import pytest

from game_logic import (
    Collision,
    ControllerKind,
    DuelConfig,
    FoodSpawner,
    GameMode,
    GridWorld,
    advance,
    build_snakes,
    detect_collision,
    resolve_collision,
)


@pytest.fixture
def world() -> GridWorld:
    return GridWorld.from_config(DuelConfig())


@pytest.fixture
def snakes(world: GridWorld):
    return build_snakes(world, DuelConfig(), GameMode.HUMAN_VS_AUTONOMOUS)


class TestDuelConfig:
    def test_defaults_are_valid(self) -> None:
        cfg = DuelConfig()
        assert (cfg.board_width, cfg.board_height, cfg.cell_size) == (600, 400, 20)
        assert cfg.initial_length == 3

    @pytest.mark.parametrize(
        "overrides",
        [
            {"board_width": 0},
            {"board_height": -400},
            {"cell_size": 7},
            {"initial_length": 1},
            {"initial_length": 20},
            {"min_speed": 0},
            {"base_speed": 30.0},
            {"random_move_probability": 1.5},
            {"heuristic_depth": -1},
            {"target_score": 0},
            {"countdown_interval_ms": 0},
        ],
    )
    def test_rejects_malformed_settings(self, overrides: dict) -> None:
        with pytest.raises(ValueError):
            DuelConfig(**overrides)

    def test_from_dict_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValueError, match="grid_size"):
            DuelConfig.from_dict({"grid_size": 20})

    def test_from_dict_builds_config(self) -> None:
        cfg = DuelConfig.from_dict({"board_width": 400, "max_ticks": 50})
        assert cfg.board_width == 400
        assert cfg.max_ticks == 50


class TestGridWorld:
    def test_in_bounds(self, world: GridWorld) -> None:
        assert world.in_bounds((0, 0))
        assert world.in_bounds((580, 380))
        assert not world.in_bounds((600, 0))
        assert not world.in_bounds((0, 400))
        assert not world.in_bounds((-20, 200))

    def test_step_is_plain_translation(self, world: GridWorld) -> None:
        assert world.step((150, 200), "up") == (150, 180)
        assert world.step((150, 200), "down") == (150, 220)
        assert world.step((150, 200), "right") == (170, 200)
        assert world.step((0, 0), "left") == (-20, 0)

    def test_touches_uses_chebyshev_distance(self, world: GridWorld) -> None:
        assert world.touches((150, 200), (150, 200))
        assert world.touches((150, 200), (160, 219))
        assert not world.touches((150, 200), (170, 200))
        assert not world.touches((150, 200), (140, 220))

    def test_aligned_cells_cover_board(self, world: GridWorld) -> None:
        cells = world.aligned_cells()
        assert len(cells) == 30 * 20
        assert all(x % 20 == 0 and y % 20 == 0 for x, y in cells)


class TestSpawn:
    def test_canonical_spawn_bodies(self, snakes) -> None:
        left, right = snakes
        assert list(left.body) == [(150, 200), (130, 200), (110, 200)]
        assert left.direction == "right"
        assert list(right.body) == [(450, 200), (470, 200), (490, 200)]
        assert right.direction == "left"

    def test_roster_per_mode(self, world: GridWorld) -> None:
        human = build_snakes(world, DuelConfig(), GameMode.HUMAN_VS_AUTONOMOUS)
        assert [s.controller for s in human] == [ControllerKind.HUMAN, ControllerKind.AUTONOMOUS]
        auto = build_snakes(world, DuelConfig(), GameMode.AUTONOMOUS_VS_AUTONOMOUS)
        assert all(s.is_autonomous for s in auto)
        assert [s.name for s in auto] == ["Computer 1", "Computer 2"]

    def test_spawns_share_a_lattice_on_odd_cell_width_boards(self) -> None:
        config = DuelConfig(board_width=300, board_height=400, cell_size=20)
        world = GridWorld.from_config(config)
        (left_x, _), (right_x, _) = world.spawn_points()
        assert (left_x, right_x) == (75, 215)
        assert (right_x - left_x) % config.cell_size == 0

    def test_heads_meeting_on_odd_cell_width_board_collide(self) -> None:
        config = DuelConfig(board_width=300, board_height=400, cell_size=20)
        world = GridWorld.from_config(config)
        left, right = build_snakes(world, config, GameMode.AUTONOMOUS_VS_AUTONOMOUS)

        outcome = None
        for _ in range(10):
            advance(left, world, food=(0, 0))
            advance(right, world, food=(0, 0))
            outcome = detect_collision(left, right, world)
            if outcome is not None:
                break
        assert outcome is Collision.OPPONENT
        assert left.head in right.body


class TestDirections:
    def test_reverse_is_ignored(self, snakes) -> None:
        left, _ = snakes
        assert left.queue_direction("left") is False
        assert left.pending_direction == "right"

    def test_turn_is_queued_until_next_move(self, snakes, world: GridWorld) -> None:
        left, _ = snakes
        assert left.queue_direction("up") is True
        assert left.direction == "right"
        advance(left, world, food=(0, 0))
        assert left.direction == "up"
        assert left.head == (150, 180)

    def test_unknown_direction_raises(self, snakes) -> None:
        with pytest.raises(ValueError):
            snakes[0].queue_direction("north")


class TestAdvance:
    def test_move_keeps_length(self, snakes, world: GridWorld) -> None:
        left, _ = snakes
        assert advance(left, world, food=(0, 0)) is False
        assert list(left.body) == [(170, 200), (150, 200), (130, 200)]
        assert left.score == 0

    def test_eating_grows_by_one(self, snakes, world: GridWorld) -> None:
        left, _ = snakes
        assert advance(left, world, food=(170, 200), food_value=2) is True
        assert list(left.body) == [(170, 200), (150, 200), (130, 200), (110, 200)]
        assert left.score == 2
        assert left.food_eaten == 1

    def test_eating_within_tolerance(self, snakes, world: GridWorld) -> None:
        left, _ = snakes
        assert advance(left, world, food=(180, 210)) is True

    def test_near_miss_is_not_eaten(self, snakes, world: GridWorld) -> None:
        left, _ = snakes
        assert advance(left, world, food=(190, 200)) is False
        assert len(left.body) == 3

    def test_head_off_the_board_does_not_eat(self, snakes, world: GridWorld) -> None:
        left, _ = snakes
        left.body = deque([(10, 200), (30, 200), (50, 200)])
        left.direction = left.pending_direction = "left"

        assert advance(left, world, food=(0, 200)) is False
        assert left.head == (-10, 200)
        assert left.score == 0
        assert len(left.body) == 3


class TestFoodSpawner:
    def test_food_avoids_bodies(self, snakes, world: GridWorld) -> None:
        occupied = [cell for s in snakes for cell in s.body]
        for seed in range(50):
            food = FoodSpawner(world, random.Random(seed)).spawn(occupied)
            assert world.in_bounds(food)
            assert food[0] % 20 == 0 and food[1] % 20 == 0
            assert not any(world.touches(food, cell) for cell in occupied)

    def test_full_board_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        tiny = GridWorld(40, 40, 20)
        occupied = tiny.aligned_cells()
        with caplog.at_level(logging.WARNING):
            food = FoodSpawner(tiny, random.Random(0)).spawn(occupied)
        assert food in occupied
        assert "No free cell" in caplog.text


class TestResolveCollision:
    def test_no_collision(self, snakes, world: GridWorld) -> None:
        left, right = snakes
        left.score = 4
        assert resolve_collision(left, right, world, penalty=3) is None
        assert left.score == 4

    def test_wall_collision_resets_and_penalizes(self, snakes, world: GridWorld) -> None:
        left, right = snakes
        left.body = deque([(-20, 200), (0, 200), (20, 200), (40, 200)])
        left.direction = left.pending_direction = "left"
        left.score = 5

        assert resolve_collision(left, right, world, penalty=3) is Collision.WALL
        assert left.score == 2
        assert list(left.body) == [(150, 200), (130, 200), (110, 200)]
        assert left.direction == "right"
        assert left.collisions == 1

    def test_penalty_is_clamped_at_zero(self, snakes, world: GridWorld) -> None:
        left, right = snakes
        left.body = deque([(-20, 200), (0, 200), (20, 200)])
        left.score = 1
        resolve_collision(left, right, world, penalty=3)
        assert left.score == 0

    def test_self_collision(self, snakes, world: GridWorld) -> None:
        left, right = snakes
        left.body = deque([(100, 100), (120, 100), (120, 120), (100, 120), (100, 100)])
        assert resolve_collision(left, right, world, penalty=3) is Collision.SELF

    def test_opponent_collision_leaves_opponent_alone(self, snakes, world: GridWorld) -> None:
        left, right = snakes
        right.score = 7
        before = list(right.body)
        left.body = deque([(470, 200), (450, 180), (430, 180)])

        assert resolve_collision(left, right, world, penalty=3) is Collision.OPPONENT
        assert list(right.body) == before
        assert right.score == 7

    def test_wall_checked_before_opponent(self, snakes, world: GridWorld) -> None:
        left, right = snakes
        left.body = deque([(-20, 200), (0, 200), (20, 200)])
        right.body = deque([(-20, 200), (-40, 200), (-60, 200)])
        assert resolve_collision(left, right, world, penalty=1) is Collision.WALL
