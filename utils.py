# Shared headless helpers: session factory, match simulation, and score statistics.
from __future__ import annotations

from dataclasses import dataclass
import random

import numpy as np

try:
    from .game_clock import GameClock, ManualScheduler
    from .game_logic import DuelConfig, GameMode
    from .game_session import GameSession, RoundPhase
except ImportError:
    from game_clock import GameClock, ManualScheduler
    from game_logic import DuelConfig, GameMode
    from game_session import GameSession, RoundPhase


@dataclass
class MatchResult:
    seed: int | None
    scores: tuple[int, int]
    food_eaten: tuple[int, int]
    collisions: tuple[int, int]
    ticks: int
    winner: int | None
    finished: bool  # False if max_steps ran out before the round ended

    @property
    def score_diff(self) -> int:
        return self.scores[0] - self.scores[1]


def make_session(
    cfg: DuelConfig | None = None,
    mode: GameMode = GameMode.AUTONOMOUS_VS_AUTONOMOUS,
    seed: int | None = None,
) -> tuple[GameSession, ManualScheduler]:
    """Build a session on a virtual-time scheduler for headless play."""
    scheduler = ManualScheduler()
    session = GameSession(cfg or DuelConfig(), mode=mode, clock=GameClock(scheduler), rng=random.Random(seed))
    return session, scheduler


def run_match(
    cfg: DuelConfig | None = None,
    seed: int | None = None,
    max_steps: int = 5000,
) -> MatchResult:
    """Play one autonomous-vs-autonomous round from countdown to its end (or ``max_steps`` timer firings)."""
    if max_steps <= 0:
        raise ValueError("max_steps must be > 0")

    session, scheduler = make_session(cfg, GameMode.AUTONOMOUS_VS_AUTONOMOUS, seed)
    session.start()

    steps = 0
    while session.phase is not RoundPhase.ENDED and steps < max_steps:
        if not scheduler.run_next():
            break
        steps += 1

    first, second = session.snakes
    return MatchResult(
        seed=seed,
        scores=(first.score, second.score),
        food_eaten=(first.food_eaten, second.food_eaten),
        collisions=(first.collisions, second.collisions),
        ticks=session.tick_count,
        winner=session.winner,
        finished=session.phase is RoundPhase.ENDED,
    )


def chunked_mean(values: list[float], chunk_size: int) -> tuple[np.ndarray, np.ndarray]:
    """Compute mean value per fixed-size chunk."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    arr = np.asarray(values, dtype=np.float32)
    if arr.size == 0:
        empty = np.array([], dtype=np.float32)
        return empty, empty

    x_end: list[float] = []
    means: list[float] = []
    for start in range(0, arr.size, chunk_size):
        chunk = arr[start : start + chunk_size]
        x_end.append(float(start + chunk.size))
        means.append(float(np.mean(chunk)))

    return np.asarray(x_end, dtype=np.float32), np.asarray(means, dtype=np.float32)


def score_summary(values: list[float]) -> dict[str, float]:
    """Mean/median/spread of one seat's scores."""
    arr = np.asarray(values, dtype=np.float32)
    if arr.size == 0:
        raise ValueError("values must not be empty")
    return {
        "mean": float(arr.mean()),
        "median": float(np.median(arr)),
        "max": float(arr.max()),
        "min": float(arr.min()),
        "std": float(arr.std()),
        "p25": float(np.percentile(arr, 25)),
        "p75": float(np.percentile(arr, 75)),
    }


def head_to_head(results: list[MatchResult]) -> tuple[int, int, int]:
    """(seat 0 wins, seat 1 wins, ties) over finished and unfinished matches alike."""
    scores = np.asarray([r.scores for r in results], dtype=np.int64).reshape(-1, 2)
    wins0 = int(np.sum(scores[:, 0] > scores[:, 1]))
    wins1 = int(np.sum(scores[:, 1] > scores[:, 0]))
    ties = int(np.sum(scores[:, 0] == scores[:, 1]))
    return wins0, wins1, ties
