"""
Performance Trend Analyzer.

Classifies each team's short-term form by comparing its most recent games
with the games immediately before them:

    recent half  = newest window/2 games
    prior half   = the window/2 games before those

    change_pct = (recent_avg - prior_avg) / prior_avg * 100

UP when change_pct exceeds the threshold, DOWN when it falls below the
negative threshold, STABLE otherwise. trend_strength is the magnitude of
change_pct for UP and DOWN and zero for STABLE; the raw change stays in
metrics. Teams with fewer games than the window are excluded rather
than defaulted to STABLE.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

from league_stats.analyzers.game_result import GameResult
from league_stats.constants import MatchupResult, PeriodType, TrendDirection

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 6
DEFAULT_THRESHOLD_PCT = 5.0


@dataclass
class TrendConfig:
    """Tunable trend classification settings."""
    window: int = DEFAULT_WINDOW
    threshold_pct: float = DEFAULT_THRESHOLD_PCT

    def __post_init__(self):
        if self.window < 2 or self.window % 2:
            raise ValueError(f"Trend window must be an even number >= 2, got {self.window}")
        if self.threshold_pct < 0:
            raise ValueError(f"Trend threshold must be non-negative, got {self.threshold_pct}")


def percent_change(recent_avg: float, prior_avg: float) -> float:
    """Relative change of the recent average over the prior average, in percent."""
    if prior_avg == 0:
        return 100.0 if recent_avg > 0 else 0.0
    return (recent_avg - prior_avg) / prior_avg * 100


def classify_trend(change_pct: float, threshold_pct: float = DEFAULT_THRESHOLD_PCT) -> TrendDirection:
    """Map a percent change onto a trend direction."""
    if change_pct > threshold_pct:
        return TrendDirection.UP
    if change_pct < -threshold_pct:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def _win_pct(games: List[GameResult]) -> float:
    wins = sum(1 for g in games if g.result == MatchupResult.WIN)
    return wins / len(games) * 100


def analyze_team_trend(games: List[GameResult], config: Optional[TrendConfig] = None) -> Optional[dict]:
    """
    Classify one team's trend.

    Args:
        games: The team's results in any order
        config: Window and threshold settings

    Returns:
        PerformanceTrend field dict, or None if the team has too few games
    """
    config = config or TrendConfig()
    if len(games) < config.window:
        return None

    newest_first = sorted(games, key=lambda g: g.sort_key, reverse=True)[:config.window]
    half = config.window // 2
    recent, prior = newest_first[:half], newest_first[half:]

    recent_avg = float(np.mean([g.points_for for g in recent]))
    prior_avg = float(np.mean([g.points_for for g in prior]))
    change_pct = percent_change(recent_avg, prior_avg)
    direction = classify_trend(change_pct, config.threshold_pct)
    strength = 0.0 if direction == TrendDirection.STABLE else round(abs(change_pct), 2)

    latest = newest_first[0]
    return {
        'league_id': latest.league_id,
        'team_id': latest.team_id,
        'trend_direction': direction.value,
        'trend_strength': strength,
        'period_type': PeriodType.WEEKLY.value,
        'period_value': f"{latest.season}-W{latest.week}",
        'sample_size': len(newest_first),
        'metrics': {
            'recent_average': round(recent_avg, 2),
            'previous_average': round(prior_avg, 2),
            'change_pct': round(change_pct, 2),
            'recent_win_pct': round(_win_pct(recent), 2),
            'previous_win_pct': round(_win_pct(prior), 2),
            'recent_games': len(recent),
            'threshold_pct': config.threshold_pct,
        },
    }


def compute_performance_trends(games: Iterable[GameResult], config: Optional[TrendConfig] = None) -> List[dict]:
    """
    Classify trends for every team with enough games.

    Returns:
        List of PerformanceTrend field dicts ordered by team
    """
    by_team: Dict[str, List[GameResult]] = defaultdict(list)
    for game in games:
        by_team[game.team_id].append(game)

    trends = []
    skipped = 0
    for team_id in sorted(by_team):
        trend = analyze_team_trend(by_team[team_id], config)
        if trend is None:
            skipped += 1
            continue
        trends.append(trend)

    if skipped:
        logger.debug(f"Skipped {skipped} team(s) with too few games for a trend")
    return trends
