# Analyzers Package
"""
Pure statistics computations over weekly game results.

Each analyzer takes GameResult values (and, for all-time records, the
season and championship outputs) and returns plain field dicts ready to be
upserted. None of them touch the database or the cache.
"""

from league_stats.analyzers.game_result import GameResult, season_sort_key
from league_stats.analyzers.season_analyzer import (
    StreakTracker,
    compute_season_statistics,
)
from league_stats.analyzers.head_to_head_analyzer import (
    canonical_pair,
    compute_head_to_head,
)
from league_stats.analyzers.records_analyzer import find_all_time_records
from league_stats.analyzers.trend_analyzer import (
    TrendConfig,
    analyze_team_trend,
    classify_trend,
    compute_performance_trends,
    percent_change,
)
from league_stats.analyzers.championship_analyzer import compute_championship_records

__all__ = [
    'GameResult',
    'season_sort_key',
    # Season statistics
    'StreakTracker',
    'compute_season_statistics',
    # Head-to-head
    'canonical_pair',
    'compute_head_to_head',
    # All-time records
    'find_all_time_records',
    # Trends
    'TrendConfig',
    'analyze_team_trend',
    'classify_trend',
    'compute_performance_trends',
    'percent_change',
    # Championships
    'compute_championship_records',
]
