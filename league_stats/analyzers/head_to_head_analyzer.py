"""
Head-to-Head Analyzer.

Aggregates every game between two teams into a single series record per
unordered pair. Pairs are canonicalized so that team1_id sorts before
team2_id; all counts are expressed relative to team1.

Weekly results normally arrive as mirrored pairs (A vs B and B vs A for
the same week). Each physical game is identified by its season, week and
canonical pair and counted exactly once.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from league_stats.analyzers.game_result import GameResult
from league_stats.constants import MatchupResult

logger = logging.getLogger(__name__)


def canonical_pair(team_id: str, opponent_id: str) -> Tuple[str, str]:
    """Return the pair ordered so the lower identifier comes first."""
    if team_id <= opponent_id:
        return team_id, opponent_id
    return opponent_id, team_id


def _invert(result):
    if result == MatchupResult.WIN:
        return MatchupResult.LOSS.value
    if result == MatchupResult.LOSS:
        return MatchupResult.WIN.value
    return result


def _team1_view(game: GameResult, team1_id: str) -> Tuple[float, float, str]:
    """Points for team1, points for team2 and team1's result."""
    if game.team_id == team1_id:
        return game.points_for, game.points_against, game.result
    return game.points_against, game.points_for, _invert(game.result)


def _new_record(league_id: str, team1_id: str, team2_id: str) -> dict:
    return {
        'league_id': league_id,
        'team1_id': team1_id,
        'team2_id': team2_id,
        'total_matchups': 0,
        'team1_wins': 0,
        'team2_wins': 0,
        'ties': 0,
        'team1_total_points': 0.0,
        'team2_total_points': 0.0,
        'team1_highest_score': 0.0,
        'team2_highest_score': 0.0,
        'playoff_matchups': 0,
        'championship_matchups': 0,
        'last_matchup_season': None,
        'last_matchup_week': None,
    }


def compute_head_to_head(games: Iterable[GameResult]) -> List[dict]:
    """
    Compute head-to-head records for every pair of teams that have met.

    Args:
        games: Weekly results for a league in any order

    Returns:
        List of HeadToHeadRecord field dicts, one per distinct pair
    """
    # One entry per physical game, preferring the row written from team1's side
    unique_games: Dict[Tuple, GameResult] = {}
    for game in games:
        if not game.opponent_id or game.opponent_id == game.team_id:
            continue
        team1_id, team2_id = canonical_pair(game.team_id, game.opponent_id)
        game_key = (game.season, game.week, team1_id, team2_id)
        existing = unique_games.get(game_key)
        if existing is None or (existing.team_id != team1_id and game.team_id == team1_id):
            unique_games[game_key] = game

    records: Dict[Tuple[str, str], dict] = {}
    for (season, week, team1_id, team2_id), game in sorted(
        unique_games.items(), key=lambda item: (item[1].sort_key, item[0][2], item[0][3])
    ):
        record = records.get((team1_id, team2_id))
        if record is None:
            record = _new_record(game.league_id, team1_id, team2_id)
            records[(team1_id, team2_id)] = record

        team1_points, team2_points, team1_result = _team1_view(game, team1_id)

        record['total_matchups'] += 1
        record['team1_total_points'] += team1_points
        record['team2_total_points'] += team2_points
        record['team1_highest_score'] = max(record['team1_highest_score'], team1_points)
        record['team2_highest_score'] = max(record['team2_highest_score'], team2_points)

        if team1_result == MatchupResult.WIN:
            record['team1_wins'] += 1
        elif team1_result == MatchupResult.LOSS:
            record['team2_wins'] += 1
        elif team1_result == MatchupResult.TIE:
            record['ties'] += 1

        if game.is_playoff:
            record['playoff_matchups'] += 1
        if game.is_championship:
            record['championship_matchups'] += 1

        # Games are visited chronologically
        record['last_matchup_season'] = season
        record['last_matchup_week'] = week

    for record in records.values():
        record['team1_total_points'] = round(record['team1_total_points'], 2)
        record['team2_total_points'] = round(record['team2_total_points'], 2)

    logger.debug(f"Computed {len(records)} head-to-head pairs from {len(unique_games)} games")
    return [records[pair] for pair in sorted(records)]
