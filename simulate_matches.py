"""Run headless computer-vs-computer duels and compare the two seats."""
from __future__ import annotations

import argparse
import json
import logging

import matplotlib.pyplot as plt
import numpy as np

try:
    from .game_logic import DuelConfig
    from .utils import MatchResult, chunked_mean, head_to_head, run_match, score_summary
except ImportError:
    from game_logic import DuelConfig
    from utils import MatchResult, chunked_mean, head_to_head, run_match, score_summary


logger = logging.getLogger(__name__)

METRICS = (
    ("Mean score", "mean"),
    ("Median score", "median"),
    ("Max score", "max"),
    ("Min score", "min"),
    ("Std dev", "std"),
    ("25th percentile", "p25"),
    ("75th percentile", "p75"),
)


def load_config(path: str | None) -> DuelConfig:
    if not path:
        return DuelConfig()
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of config options")
    return DuelConfig.from_dict(data)


def _compare_metric(name: str, value1: float, value2: float) -> None:
    if value1 > value2:
        leader = "Seat 1"
    elif value2 > value1:
        leader = "Seat 2"
    else:
        leader = "Tie"
    print(f"{name:<20} {value1:>15.2f} {value2:>15.2f} {leader:>10}")


def simulate_matches(cfg: DuelConfig, num_matches: int = 50, seed: int = 0, max_steps: int = 5000) -> list[MatchResult]:
    """Play ``num_matches`` rounds with consecutive seeds starting at ``seed``."""
    if num_matches <= 0:
        raise ValueError("num_matches must be > 0")

    results: list[MatchResult] = []
    for index in range(num_matches):
        result = run_match(cfg, seed=seed + index, max_steps=max_steps)
        if not result.finished:
            logger.warning("Match with seed %d hit the %d-step limit", result.seed, max_steps)
        results.append(result)
        if (index + 1) % 10 == 0 or index + 1 == num_matches:
            print(f"Match {index + 1}/{num_matches}", end="\r", flush=True)
    print()
    return results


def print_report(results: list[MatchResult]) -> None:
    scores1 = [float(r.scores[0]) for r in results]
    scores2 = [float(r.scores[1]) for r in results]
    summary1 = score_summary(scores1)
    summary2 = score_summary(scores2)

    print("=" * 64)
    print("MATCH RESULTS")
    print("=" * 64)
    print(f"{'Metric':<20} {'Seat 1':>15} {'Seat 2':>15} {'Leader':>10}")
    print("-" * 64)
    for label, key in METRICS:
        _compare_metric(label, summary1[key], summary2[key])
    ticks = np.asarray([r.ticks for r in results], dtype=np.float32)
    print(f"{'Mean ticks':<20} {float(ticks.mean()):>15.1f}")
    print("=" * 64)

    wins1, wins2, ties = head_to_head(results)
    total = len(results)
    print(f"Head-to-head: Seat 1 wins {wins1}, Seat 2 wins {wins2}, Ties {ties}")
    print(f"Win rate: Seat 1 {wins1 / total * 100:.1f}%, Seat 2 {wins2 / total * 100:.1f}%")


def save_plot(results: list[MatchResult], path: str, chunk_size: int = 10) -> None:
    """Chunked mean score per seat, plus the distribution of score differences."""
    fig, (ax_trend, ax_hist) = plt.subplots(1, 2, figsize=(12, 4.5))

    ax_trend.set_title(f"Average Score (per {chunk_size} matches)")
    ax_trend.set_xlabel("Match")
    ax_trend.set_ylabel("Score")
    ax_trend.grid(alpha=0.25)
    for seat, color in ((0, "#45d483"), (1, "#ff5c74")):
        x, mean = chunked_mean([float(r.scores[seat]) for r in results], chunk_size)
        if x.size > 0:
            ax_trend.plot(x, mean, color=color, linewidth=2.0, marker="o", markersize=3, label=f"Seat {seat + 1}")
    handles, _ = ax_trend.get_legend_handles_labels()
    if handles:
        ax_trend.legend(loc="upper left")

    diffs = np.asarray([r.score_diff for r in results], dtype=np.float32)
    ax_hist.set_title("Score Difference (Seat 1 - Seat 2)")
    ax_hist.set_xlabel("Difference")
    ax_hist.set_ylabel("Count")
    ax_hist.grid(alpha=0.2)
    if diffs.size > 0:
        bins = np.arange(diffs.min() - 0.5, diffs.max() + 1.5, 1.0)
        ax_hist.hist(diffs, bins=bins, color="#44b5a4", alpha=0.85, edgecolor="#17323a")
        ax_hist.axvline(float(diffs.mean()), color="#1f77b4", linestyle="--", linewidth=1.6,
                        label=f"Mean: {float(diffs.mean()):.2f}")
        ax_hist.legend(loc="upper right")

    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    print(f"Saved plot: {path}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate computer-vs-computer snake duels")
    parser.add_argument("--matches", type=int, default=50, help="Number of matches to play")
    parser.add_argument("--seed", type=int, default=0, help="Seed of the first match")
    parser.add_argument("--max-steps", type=int, default=5000, help="Timer firings allowed per match")
    parser.add_argument("--config", type=str, default="", help="JSON file of DuelConfig options")
    parser.add_argument("--plot", type=str, default="", help="Save a score chart to this path")
    parser.add_argument("--log-level", type=str, default="WARNING", choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    cfg = load_config(args.config)
    results = simulate_matches(cfg, num_matches=args.matches, seed=args.seed, max_steps=args.max_steps)
    print_report(results)
    if args.plot:
        save_plot(results, args.plot)


if __name__ == "__main__":
    main()
