# Core two-snake duel board, bodies, food and collision rules, independent from GUI/scheduling code.
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, fields
import enum
import logging
import random
from typing import Any, Iterable, Mapping


logger = logging.getLogger(__name__)

Cell = tuple[int, int]

# Order matters: planners explore neighbors in this order.
DIRECTIONS = ("up", "down", "left", "right")
OPPOSITE_DIRECTION = {"up": "down", "down": "up", "left": "right", "right": "left"}
DIRECTION_DELTAS = {"up": (0, -1), "down": (0, 1), "left": (-1, 0), "right": (1, 0)}

# Validation bounds for DuelConfig.
MIN_INITIAL_LENGTH = 2
MIN_CELL_SIZE = 4
MAX_SPEED_LIMIT = 60.0


class GameMode(enum.Enum):
    HUMAN_VS_AUTONOMOUS = "human_vs_autonomous"
    AUTONOMOUS_VS_AUTONOMOUS = "autonomous_vs_autonomous"


class ControllerKind(enum.Enum):
    HUMAN = "human"
    AUTONOMOUS = "autonomous"


class Collision(enum.Enum):
    """Collision outcomes, in the order they are checked."""

    WALL = "wall"
    SELF = "self"
    OPPONENT = "opponent"


# Display identity and controller per seat, for each mode.
MODE_ROSTER: dict[GameMode, tuple[tuple[str, str, ControllerKind], ...]] = {
    GameMode.HUMAN_VS_AUTONOMOUS: (
        ("Player 1", "#45d483", ControllerKind.HUMAN),
        ("Computer", "#ff5c74", ControllerKind.AUTONOMOUS),
    ),
    GameMode.AUTONOMOUS_VS_AUTONOMOUS: (
        ("Computer 1", "#45d483", ControllerKind.AUTONOMOUS),
        ("Computer 2", "#ff5c74", ControllerKind.AUTONOMOUS),
    ),
}


@dataclass
class DuelConfig:
    """Runtime settings shared between the logic layer, the scheduler and the GUI.

    Board sizes and cell coordinates are in pixels; every cell is
    ``cell_size`` pixels wide. Speeds are ticks per second.
    """
    board_width: int = 600
    board_height: int = 400
    cell_size: int = 20
    initial_length: int = 3
    food_value: int = 1
    collision_penalty: int = 3
    base_speed: float = 5.0
    min_speed: float = 1.0
    max_speed: float = 15.0
    speed_increment: float = 0.5
    countdown_steps: int = 3
    countdown_interval_ms: int = 1000
    random_move_probability: float = 0.1
    heuristic_depth: int = 10
    target_score: int = 10
    max_ticks: int = 0  # 0 disables the round-length limit

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ValueError describing the first malformed setting."""
        if self.board_width <= 0 or self.board_height <= 0:
            raise ValueError(
                f"Board dimensions must be positive (got {self.board_width}x{self.board_height})."
            )
        if self.cell_size < MIN_CELL_SIZE:
            raise ValueError(f"Cell size must be at least {MIN_CELL_SIZE} (got {self.cell_size}).")
        if self.board_width % self.cell_size or self.board_height % self.cell_size:
            raise ValueError(
                f"Cell size {self.cell_size} must divide the board "
                f"{self.board_width}x{self.board_height} exactly."
            )
        if self.initial_length < MIN_INITIAL_LENGTH:
            raise ValueError(f"Initial length must be at least {MIN_INITIAL_LENGTH}.")
        # Spawn bodies trail from the spawn points towards the side walls.
        trail = (self.initial_length - 1) * self.cell_size
        (left_x, _), (right_x, _) = GridWorld.from_config(self).spawn_points()
        if left_x - trail < 0 or right_x + trail >= self.board_width:
            raise ValueError(
                f"Initial length {self.initial_length} does not fit on a {self.board_width}px wide board."
            )
        if self.food_value <= 0:
            raise ValueError("Food value must be positive.")
        if self.collision_penalty < 0:
            raise ValueError("Collision penalty must not be negative.")
        if not (0 < self.min_speed <= self.max_speed <= MAX_SPEED_LIMIT):
            raise ValueError(
                f"Speeds must satisfy 0 < min_speed <= max_speed <= {MAX_SPEED_LIMIT} "
                f"(got min={self.min_speed}, max={self.max_speed})."
            )
        if not (self.min_speed <= self.base_speed <= self.max_speed):
            raise ValueError("Base speed must lie between min_speed and max_speed.")
        if self.speed_increment < 0:
            raise ValueError("Speed increment must not be negative.")
        if self.countdown_steps < 0:
            raise ValueError("Countdown steps must not be negative.")
        if self.countdown_interval_ms <= 0:
            raise ValueError("Countdown interval must be positive.")
        if not (0.0 <= self.random_move_probability <= 1.0):
            raise ValueError("Random move probability must be between 0 and 1.")
        if self.heuristic_depth < 0:
            raise ValueError("Heuristic depth must not be negative.")
        if self.target_score <= 0:
            raise ValueError("Target score must be positive.")
        if self.max_ticks < 0:
            raise ValueError("Max ticks must not be negative.")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DuelConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config option(s): {', '.join(unknown)}")
        return cls(**dict(data))


@dataclass(frozen=True)
class GridWorld:
    """Pixel-space board: bounds checks and single-step translation."""
    width: int
    height: int
    cell_size: int

    @classmethod
    def from_config(cls, config: DuelConfig) -> GridWorld:
        return cls(config.board_width, config.board_height, config.cell_size)

    def in_bounds(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.width and 0 <= y < self.height

    def step(self, cell: Cell, direction: str) -> Cell:
        """Translate by one cell; the result may be out of bounds."""
        dx, dy = DIRECTION_DELTAS[direction]
        return cell[0] + dx * self.cell_size, cell[1] + dy * self.cell_size

    def touches(self, a: Cell, b: Cell) -> bool:
        """Chebyshev distance strictly below one cell."""
        return max(abs(a[0] - b[0]), abs(a[1] - b[1])) < self.cell_size

    def aligned_cells(self) -> list[Cell]:
        """Every grid-aligned cell of the board, row by row."""
        return [
            (x, y)
            for y in range(0, self.height, self.cell_size)
            for x in range(0, self.width, self.cell_size)
        ]

    def spawn_points(self) -> tuple[Cell, Cell]:
        """Heads of the left and right seats: left quarter width and vertical center.

        The right seat sits a whole number of cells (half the board, rounded down)
        to the right of the left one, so both bodies share one lattice.
        """
        left_x = self.width // 4
        right_x = left_x + (self.width // (2 * self.cell_size)) * self.cell_size
        return (left_x, self.height // 2), (right_x, self.height // 2)


class Snake:
    """One seat's body, heading and score. Head is body[0]."""

    def __init__(
        self,
        agent_id: int,
        name: str,
        color: str,
        controller: ControllerKind,
        world: GridWorld,
        spawn: Cell,
        spawn_direction: str,
        initial_length: int,
    ) -> None:
        self.agent_id = agent_id
        self.name = name
        self.color = color
        self.controller = controller
        self.world = world
        self.spawn = spawn
        self.spawn_direction = spawn_direction
        self.initial_length = initial_length
        self.score = 0
        self.food_eaten = 0
        self.collisions = 0
        self.body: deque[Cell] = deque()
        self.reset()

    @property
    def head(self) -> Cell:
        return self.body[0]

    @property
    def is_autonomous(self) -> bool:
        return self.controller is ControllerKind.AUTONOMOUS

    def reset(self) -> None:
        """Rebuild the canonical spawn body trailing behind the spawn heading. Score is kept."""
        behind = OPPOSITE_DIRECTION[self.spawn_direction]
        self.body = deque()
        cell = self.spawn
        for _ in range(self.initial_length):
            self.body.append(cell)
            cell = self.world.step(cell, behind)
        self.direction = self.spawn_direction
        self.pending_direction = self.spawn_direction  # applied on the next move

    def queue_direction(self, new_direction: str) -> bool:
        """Queue a human input; instant 180-degree turns are ignored."""
        if new_direction not in OPPOSITE_DIRECTION:
            raise ValueError(f"Unknown direction: {new_direction!r}")
        if OPPOSITE_DIRECTION[new_direction] == self.direction:
            return False
        self.pending_direction = new_direction
        return True

    def steer(self, direction: str) -> None:
        """Set the next move's heading without the reversal guard (planner output)."""
        if direction not in OPPOSITE_DIRECTION:
            raise ValueError(f"Unknown direction: {direction!r}")
        self.pending_direction = direction

    def __repr__(self) -> str:
        return f"Snake(id={self.agent_id}, name={self.name!r}, head={self.head}, score={self.score})"


def build_snakes(world: GridWorld, config: DuelConfig, mode: GameMode) -> tuple[Snake, Snake]:
    """Create both seats at their canonical spawn state for ``mode``."""
    left_spawn, right_spawn = world.spawn_points()
    (name0, color0, kind0), (name1, color1, kind1) = MODE_ROSTER[mode]
    return (
        Snake(0, name0, color0, kind0, world, left_spawn, "right", config.initial_length),
        Snake(1, name1, color1, kind1, world, right_spawn, "left", config.initial_length),
    )


class FoodSpawner:
    """Picks grid-aligned food cells that touch no snake body."""

    def __init__(self, world: GridWorld, rng: random.Random | None = None) -> None:
        self.world = world
        self.rng = rng or random.Random()
        self._cells = world.aligned_cells()

    def spawn(self, occupied: Iterable[Cell]) -> Cell:
        occupied = list(occupied)
        free = [
            cell for cell in self._cells
            if not any(self.world.touches(cell, part) for part in occupied)
        ]
        if not free:
            logger.warning("No free cell for food; placing it on an occupied cell.")
            free = self._cells
        return self.rng.choice(free)


def advance(snake: Snake, world: GridWorld, food: Cell, food_value: int = 1) -> bool:
    """Move one cell along the queued heading. Returns True if the food was eaten.

    Eating keeps the old tail in place (net growth of one cell) and adds
    ``food_value`` to the score; otherwise the tail is dropped. A head that
    has left the board never eats, even when the food is within tolerance.
    """
    snake.direction = snake.pending_direction
    new_head = world.step(snake.head, snake.direction)
    snake.body.appendleft(new_head)

    if world.in_bounds(new_head) and world.touches(new_head, food):
        snake.score += food_value
        snake.food_eaten += 1
        return True

    snake.body.pop()
    return False


def detect_collision(snake: Snake, other: Snake, world: GridWorld) -> Collision | None:
    """First collision that applies to ``snake``'s head, or None."""
    head = snake.head
    if not world.in_bounds(head):
        return Collision.WALL
    if any(part == head for part in list(snake.body)[1:]):
        return Collision.SELF
    if head in other.body:
        return Collision.OPPONENT
    return None


def apply_collision(snake: Snake, outcome: Collision, penalty: int) -> None:
    """Subtract the clamped penalty and respawn ``snake``."""
    snake.score = max(0, snake.score - penalty)
    snake.collisions += 1
    snake.reset()
    logger.debug("%s hit %s; score now %d", snake.name, outcome.value, snake.score)


def resolve_collision(snake: Snake, other: Snake, world: GridWorld, penalty: int) -> Collision | None:
    """Penalize and respawn ``snake`` if its head hit something. ``other`` is never modified."""
    outcome = detect_collision(snake, other, world)
    if outcome is not None:
        apply_collision(snake, outcome, penalty)
    return outcome
