# Round orchestration: owns both snakes, the food and the round phase; the only writer of game state.
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import enum
from functools import partial
import logging
import random
from typing import Callable

try:
    from .agent import AutonomousController
    from .game_clock import GameClock, ManualScheduler
    from .game_logic import (
        DIRECTIONS,
        Cell,
        ControllerKind,
        DuelConfig,
        FoodSpawner,
        GameMode,
        GridWorld,
        Snake,
        advance,
        apply_collision,
        build_snakes,
        detect_collision,
    )
except ImportError:
    from agent import AutonomousController
    from game_clock import GameClock, ManualScheduler
    from game_logic import (
        DIRECTIONS,
        Cell,
        ControllerKind,
        DuelConfig,
        FoodSpawner,
        GameMode,
        GridWorld,
        Snake,
        advance,
        apply_collision,
        build_snakes,
        detect_collision,
    )


logger = logging.getLogger(__name__)


class RoundPhase(enum.Enum):
    READY = "ready"  # built, start() not called yet
    COUNTDOWN = "countdown"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass(frozen=True)
class SnakeView:
    agent_id: int
    name: str
    color: str
    controller: ControllerKind
    body: tuple[Cell, ...]
    direction: str
    score: int


@dataclass(frozen=True)
class GameStateView:
    """Read-only snapshot handed to renderers after every state change."""
    snakes: tuple[SnakeView, ...]
    food: Cell
    mode: GameMode
    phase: RoundPhase
    countdown: int
    winner: int | None
    tick: int
    speed: float
    period_ms: int

    @property
    def paused(self) -> bool:
        return self.phase is RoundPhase.PAUSED

    @property
    def is_tie(self) -> bool:
        return self.phase is RoundPhase.ENDED and self.winner is None


StateListener = Callable[[GameStateView], None]


class GameSession:
    """
    One duel between two snakes, driven by a ``GameClock``.

    Rounds go READY -> COUNTDOWN -> RUNNING <-> PAUSED, and RUNNING -> ENDED
    once a score reaches ``target_score`` or ``max_ticks`` ticks have run.
    Commands issued while a tick or countdown step is executing (for example
    from a state listener) are queued and applied in order once it returns.
    """

    def __init__(
        self,
        config: DuelConfig | None = None,
        mode: GameMode = GameMode.HUMAN_VS_AUTONOMOUS,
        clock: GameClock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or DuelConfig()
        self.world = GridWorld.from_config(self.config)
        self.rng = rng or random.Random()
        self.clock = clock or GameClock(ManualScheduler())
        self.spawner = FoodSpawner(self.world, self.rng)
        self.controller = AutonomousController(
            self.world,
            random_move_probability=self.config.random_move_probability,
            search_depth=self.config.heuristic_depth,
            rng=self.rng,
        )
        self.listeners: list[StateListener] = []
        self._busy = False
        self._deferred: deque[Callable[[], None]] = deque()
        self._build_state(mode)

    # ------------------------------------------------------------------ state

    def _build_state(self, mode: GameMode) -> None:
        self.mode = mode
        self.snakes: tuple[Snake, Snake] = build_snakes(self.world, self.config, mode)
        self.food: Cell = self.spawner.spawn(self._occupied_cells())
        self.speed = self.config.base_speed
        self.tick_count = 0
        self.phase = RoundPhase.READY
        self.countdown = self.config.countdown_steps
        self.winner: int | None = None

    def _occupied_cells(self) -> list[Cell]:
        return [cell for snake in self.snakes for cell in snake.body]

    def _pairs(self) -> tuple[tuple[Snake, Snake], tuple[Snake, Snake]]:
        first, second = self.snakes
        return (first, second), (second, first)

    @property
    def period_ms(self) -> int:
        return max(1, round(1000 / self.speed))

    @property
    def paused(self) -> bool:
        return self.phase is RoundPhase.PAUSED

    def snapshot(self) -> GameStateView:
        return GameStateView(
            snakes=tuple(
                SnakeView(
                    agent_id=s.agent_id,
                    name=s.name,
                    color=s.color,
                    controller=s.controller,
                    body=tuple(s.body),
                    direction=s.direction,
                    score=s.score,
                )
                for s in self.snakes
            ),
            food=self.food,
            mode=self.mode,
            phase=self.phase,
            countdown=self.countdown,
            winner=self.winner,
            tick=self.tick_count,
            speed=self.speed,
            period_ms=self.period_ms,
        )

    def add_listener(self, listener: StateListener) -> None:
        self.listeners.append(listener)

    def _notify(self) -> None:
        view = self.snapshot()
        for listener in list(self.listeners):
            listener(view)

    # --------------------------------------------------------------- commands

    def _defer(self, command: Callable[..., None], *args: object) -> bool:
        """Queue ``command`` if a step is executing. Returns True if it was queued."""
        if not self._busy:
            return False
        self._deferred.append(partial(command, *args))
        return True

    def start(self) -> None:
        """Begin the countdown for a freshly built round; restarts an ended one."""
        if self._defer(self.start):
            return
        if self.phase is RoundPhase.READY:
            self._begin_countdown()
        elif self.phase is RoundPhase.ENDED:
            self.restart()

    def restart(self) -> None:
        """Rebuild the round under the current mode and re-enter the countdown."""
        if self._defer(self.restart):
            return
        self.clock.cancel()
        self._build_state(self.mode)
        self._begin_countdown()

    def set_mode(self, mode: GameMode) -> None:
        if self._defer(self.set_mode, mode):
            return
        logger.info("Mode changed to %s", mode.value)
        self.mode = mode
        self.restart()

    def toggle_pause(self) -> None:
        """Pause a running round or resume a paused one; ignored in other phases."""
        if self._defer(self.toggle_pause):
            return
        if self.phase is RoundPhase.RUNNING:
            self.clock.cancel()
            self.phase = RoundPhase.PAUSED
        elif self.phase is RoundPhase.PAUSED:
            self.phase = RoundPhase.RUNNING
            self.clock.schedule(self.period_ms, self._on_timer)
        else:
            return
        logger.debug("Round %s at tick %d", self.phase.value, self.tick_count)
        self._notify()

    def set_speed(self, value: float) -> None:
        """Clamp ``value`` into the configured speed range and retime the clock."""
        if self._defer(self.set_speed, value):
            return
        self._apply_speed(value)
        self._notify()

    def set_direction(self, agent_id: int, direction: str) -> None:
        """Queue a heading for a human-driven snake; reversals are ignored."""
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {direction!r}")
        if not 0 <= agent_id < len(self.snakes):
            raise ValueError(f"Unknown agent id: {agent_id}")
        if self._defer(self.set_direction, agent_id, direction):
            return
        snake = self.snakes[agent_id]
        if snake.is_autonomous:
            logger.debug("Ignoring direction for autonomous %s", snake.name)
            return
        snake.queue_direction(direction)

    def place_food(self, cell: Cell) -> None:
        """Put the food on ``cell`` (used by hosts and tests for fixed setups)."""
        if not self.world.in_bounds(cell):
            raise ValueError(f"Food cell {cell} is outside the board")
        if self._defer(self.place_food, cell):
            return
        self.food = cell
        self._notify()

    # ------------------------------------------------------------------ ticks

    def _begin_countdown(self) -> None:
        self.countdown = self.config.countdown_steps
        if self.countdown <= 0:
            self._begin_running()
            return
        self.phase = RoundPhase.COUNTDOWN
        self.clock.schedule(self.config.countdown_interval_ms, self._on_timer)
        logger.info("Round starting in %d (%s)", self.countdown, self.mode.value)
        self._notify()

    def _begin_running(self) -> None:
        self.countdown = 0
        self.phase = RoundPhase.RUNNING
        self.clock.schedule(self.period_ms, self._on_timer)
        logger.info("Round running at %.1f ticks/s", self.speed)
        self._notify()

    def _on_timer(self) -> None:
        if self.phase is RoundPhase.COUNTDOWN:
            self._run_exclusive(self._countdown_step)
        elif self.phase is RoundPhase.RUNNING:
            self._run_exclusive(self._tick)

    def _run_exclusive(self, step: Callable[[], None]) -> None:
        self._busy = True
        try:
            step()
        finally:
            self._busy = False
        while self._deferred:
            self._deferred.popleft()()

    def _countdown_step(self) -> None:
        self.countdown -= 1
        if self.countdown <= 0:
            self._begin_running()
        else:
            self._notify()

    def tick(self) -> None:
        """Run one simulation step now, outside the clock. Ignored unless running."""
        if self._busy:
            raise RuntimeError("GameSession.tick() re-entered during a tick")
        self._run_exclusive(self._tick)

    def _tick(self) -> None:
        if self.phase is not RoundPhase.RUNNING:
            return
        self.tick_count += 1
        cfg = self.config

        for snake in self.snakes:
            if advance(snake, self.world, self.food, cfg.food_value):
                self._food_eaten(snake)

        for snake, other in self._pairs():
            if snake.is_autonomous:
                self.controller.choose_direction(snake, other, self.food)

        # Both heads are judged against the board as it stood after the moves,
        # so a head-on meeting penalizes both snakes.
        outcomes = [(snake, detect_collision(snake, other, self.world)) for snake, other in self._pairs()]
        for snake, outcome in outcomes:
            if outcome is not None:
                apply_collision(snake, outcome, cfg.collision_penalty)

        self._check_round_end()
        self._notify()

    def _food_eaten(self, snake: Snake) -> None:
        logger.debug("%s ate food at %s (score %d)", snake.name, snake.head, snake.score)
        self.food = self.spawner.spawn(self._occupied_cells())
        self._apply_speed(self.speed + self.config.speed_increment)

    def _apply_speed(self, value: float) -> None:
        cfg = self.config
        speed = min(cfg.max_speed, max(cfg.min_speed, float(value)))
        if speed == self.speed:
            return
        self.speed = speed
        logger.debug("Speed set to %.2f ticks/s (%d ms)", self.speed, self.period_ms)
        if self.phase is RoundPhase.RUNNING:
            self.clock.reschedule(self.period_ms)

    def _check_round_end(self) -> None:
        cfg = self.config
        reached_target = any(s.score >= cfg.target_score for s in self.snakes)
        out_of_ticks = cfg.max_ticks > 0 and self.tick_count >= cfg.max_ticks
        if not (reached_target or out_of_ticks):
            return

        first, second = self.snakes
        if first.score > second.score:
            self.winner = first.agent_id
        elif second.score > first.score:
            self.winner = second.agent_id
        else:
            self.winner = None
        self.phase = RoundPhase.ENDED
        self.clock.cancel()
        if self.winner is None:
            logger.info("Round ended in a tie at %d-%d after %d ticks", first.score, second.score, self.tick_count)
        else:
            logger.info(
                "%s wins %d-%d after %d ticks",
                self.snakes[self.winner].name, first.score, second.score, self.tick_count,
            )
