"""
Championship Analyzer.

Resolves each season's championship game from the two weekly results
flagged as championship games. Seasons with any other number of flagged
rows, or with a tied championship score, are malformed input: they are
skipped with a warning and produce no record.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from league_stats.analyzers.game_result import GameResult, season_sort_key

logger = logging.getLogger(__name__)


def compute_championship_records(games: Iterable[GameResult]) -> List[dict]:
    """
    Build one championship record per resolvable season.

    Args:
        games: Weekly results for a league; rows not flagged as championship
            games are ignored

    Returns:
        List of ChampionshipRecord field dicts ordered by season
    """
    by_season: Dict[str, List[GameResult]] = defaultdict(list)
    for game in games:
        if game.is_championship:
            by_season[game.season].append(game)

    records = []
    for season in sorted(by_season, key=season_sort_key):
        finalists = by_season[season]
        if len(finalists) != 2:
            logger.warning(
                f"Skipping season {season}: expected 2 championship rows, found {len(finalists)}"
            )
            continue

        first, second = finalists
        if first.points_for == second.points_for:
            logger.warning(f"Skipping season {season}: championship game ended level")
            continue

        champion, runner_up = (first, second) if first.points_for > second.points_for else (second, first)
        records.append({
            'league_id': champion.league_id,
            'season': season,
            'champion_id': champion.team_id,
            'runner_up_id': runner_up.team_id,
            'championship_score': champion.points_for,
            'runner_up_score': runner_up.points_for,
            'championship_week': champion.week,
        })

    return records
