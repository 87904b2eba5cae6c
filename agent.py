# Autonomous snake controller: chase food along a shortest path, else head for open space.
from __future__ import annotations

import logging
import random

try:
    from .game_logic import DIRECTIONS, Cell, GridWorld, Snake
    from .pathfinding import find_path, is_blocked, reachable_area
except ImportError:
    from game_logic import DIRECTIONS, Cell, GridWorld, Snake
    from pathfinding import find_path, is_blocked, reachable_area


logger = logging.getLogger(__name__)


def build_obstacles(snake: Snake, opponent: Snake) -> set[Cell]:
    """Cells ``snake`` must avoid: its own body minus the head, plus the whole opponent."""
    obstacles = set(snake.body)
    obstacles.discard(snake.head)
    obstacles.update(opponent.body)
    return obstacles


def direction_between(world: GridWorld, src: Cell, dst: Cell) -> str:
    """Direction of the single step from ``src`` to the adjacent ``dst``."""
    for direction in DIRECTIONS:
        if world.step(src, direction) == dst:
            return direction
    raise ValueError(f"{dst} is not one step away from {src}")


class AutonomousController:
    """Picks the next heading for a computer-driven snake."""

    def __init__(
        self,
        world: GridWorld,
        random_move_probability: float = 0.1,
        search_depth: int = 10,
        rng: random.Random | None = None,
    ) -> None:
        self.world = world
        self.random_move_probability = random_move_probability
        self.search_depth = search_depth
        self.rng = rng or random.Random()

    def safe_directions(self, head: Cell, obstacles: set[Cell]) -> list[str]:
        return [d for d in DIRECTIONS if not is_blocked(self.world, self.world.step(head, d), obstacles)]

    def choose_direction(self, snake: Snake, opponent: Snake, food: Cell) -> str:
        """Steer ``snake`` for its next move and return the chosen direction.

        Only ``snake``'s queued heading is written; both bodies are read-only here.
        """
        obstacles = build_obstacles(snake, opponent)
        path = find_path(self.world, snake.head, food, obstacles)
        if path is not None and len(path) > 1:
            direction = direction_between(self.world, path[0], path[1])
        else:
            direction = self._open_space_direction(snake, obstacles)
        snake.steer(direction)
        return direction

    def _open_space_direction(self, snake: Snake, obstacles: set[Cell]) -> str:
        safe = self.safe_directions(snake.head, obstacles)
        if not safe:
            # Boxed in: keep going and take the collision.
            logger.debug("%s has no safe move, holding %s", snake.name, snake.direction)
            return snake.direction

        if self.rng.random() < self.random_move_probability:
            return self.rng.choice(safe)

        areas = {
            d: reachable_area(self.world, self.world.step(snake.head, d), obstacles, self.search_depth)
            for d in safe
        }
        best = max(areas.values())
        return self.rng.choice([d for d in safe if areas[d] == best])
