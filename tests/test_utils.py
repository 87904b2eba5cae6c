"""Tests for utils: headless matches and score statistics."""

from __future__ import annotations

import numpy as np
import pytest

from game_logic import DuelConfig, GameMode
from game_session import RoundPhase
from utils import MatchResult, chunked_mean, head_to_head, make_session, run_match, score_summary


def _result(scores: tuple[int, int]) -> MatchResult:
    return MatchResult(
        seed=None, scores=scores, food_eaten=scores, collisions=(0, 0), ticks=10, winner=None, finished=True
    )


def test_make_session_defaults_to_computer_duel() -> None:
    session, scheduler = make_session(seed=1)
    assert session.mode is GameMode.AUTONOMOUS_VS_AUTONOMOUS
    assert session.phase is RoundPhase.READY
    assert scheduler.pending() == 0


class TestRunMatch:
    def test_runs_to_the_tick_limit(self) -> None:
        result = run_match(DuelConfig(max_ticks=40, target_score=50), seed=5)
        assert result.finished
        assert result.ticks == 40
        assert all(score >= 0 for score in result.scores)
        if result.scores[0] == result.scores[1]:
            assert result.winner is None
        else:
            assert result.winner == int(np.argmax(result.scores))

    def test_same_seed_same_match(self) -> None:
        cfg = DuelConfig(max_ticks=60)
        assert run_match(cfg, seed=11) == run_match(cfg, seed=11)

    def test_step_limit_leaves_match_unfinished(self) -> None:
        result = run_match(DuelConfig(target_score=50), seed=2, max_steps=10)
        assert not result.finished
        assert result.ticks == 10 - DuelConfig().countdown_steps

    def test_rejects_non_positive_steps(self) -> None:
        with pytest.raises(ValueError):
            run_match(max_steps=0)


def test_chunked_mean() -> None:
    x, means = chunked_mean([1, 2, 3, 4, 5], chunk_size=2)
    np.testing.assert_allclose(x, [2, 4, 5])
    np.testing.assert_allclose(means, [1.5, 3.5, 5.0])
    empty_x, empty_means = chunked_mean([], chunk_size=3)
    assert empty_x.size == 0 and empty_means.size == 0


def test_score_summary() -> None:
    summary = score_summary([1.0, 2.0, 3.0, 4.0])
    assert summary["mean"] == pytest.approx(2.5)
    assert summary["median"] == pytest.approx(2.5)
    assert summary["max"] == 4.0 and summary["min"] == 1.0
    with pytest.raises(ValueError):
        score_summary([])


def test_head_to_head() -> None:
    results = [_result((3, 1)), _result((0, 2)), _result((2, 2)), _result((5, 0))]
    assert head_to_head(results) == (2, 1, 1)
