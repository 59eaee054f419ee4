"""
All-Time Records Analyzer.

Scans a league's full history for extremal values. Every record type is an
independent scan producing at most one holder; a record type with no
qualifying data produces nothing.

Ties keep the earliest instance: scans walk the history chronologically
and only replace the current holder on a strictly better value.
"""

import logging
from typing import Callable, Iterable, List, Mapping, Optional

from league_stats.analyzers.game_result import GameResult, season_sort_key
from league_stats.constants import MatchupResult, RecordHolderType, RecordType

logger = logging.getLogger(__name__)


def _best(items, value_of: Callable, higher_is_better: bool = True):
    """First item with the extremal value, or None."""
    best_item = None
    best_value = None
    for item in items:
        value = value_of(item)
        if value is None:
            continue
        if best_value is None:
            better = True
        elif higher_is_better:
            better = value > best_value
        else:
            better = value < best_value
        if better:
            best_item, best_value = item, value
    return best_item


def _game_record(record_type: RecordType, game: GameResult, value: float, description: str,
                 metadata: Optional[dict] = None) -> dict:
    return {
        'record_type': record_type.value,
        'record_holder_type': RecordHolderType.TEAM.value,
        'record_holder_id': game.team_id,
        'record_value': float(value),
        'season': game.season,
        'week': game.week,
        'description': description,
        'record_metadata': metadata or {},
    }


def _season_record(record_type: RecordType, stat: Mapping, value_field: str, description: str,
                   metadata: Optional[dict] = None) -> dict:
    return {
        'record_type': record_type.value,
        'record_holder_type': RecordHolderType.TEAM.value,
        'record_holder_id': stat['team_id'],
        'record_value': float(stat[value_field]),
        'season': stat['season'],
        'week': None,
        'description': description,
        'record_metadata': metadata or {},
    }


# =============================================================================
# Weekly Result Scans
# =============================================================================

def _weekly_records(games: List[GameResult]) -> List[dict]:
    records = []

    highest = _best(games, lambda g: g.points_for)
    if highest:
        records.append(_game_record(
            RecordType.HIGHEST_SINGLE_GAME_SCORE, highest, highest.points_for,
            f"{highest.team_id} scored {highest.points_for:g} in week {highest.week} of {highest.season}",
            {'opponent_id': highest.opponent_id},
        ))

    # Zero scores are treated as forfeits
    lowest = _best(
        (g for g in games if g.points_for > 0), lambda g: g.points_for, higher_is_better=False
    )
    if lowest:
        records.append(_game_record(
            RecordType.LOWEST_SINGLE_GAME_SCORE, lowest, lowest.points_for,
            f"{lowest.team_id} scored {lowest.points_for:g} in week {lowest.week} of {lowest.season}",
            {'opponent_id': lowest.opponent_id},
        ))

    playoff = _best((g for g in games if g.is_playoff), lambda g: g.points_for)
    if playoff:
        records.append(_game_record(
            RecordType.HIGHEST_PLAYOFF_SCORE, playoff, playoff.points_for,
            f"{playoff.team_id} scored {playoff.points_for:g} in the {playoff.season} playoffs",
            {'is_championship': playoff.is_championship},
        ))

    in_loss = _best(
        (g for g in games if g.result == MatchupResult.LOSS), lambda g: g.points_for
    )
    if in_loss:
        records.append(_game_record(
            RecordType.MOST_POINTS_IN_LOSS, in_loss, in_loss.points_for,
            f"{in_loss.team_id} lost with {in_loss.points_for:g} points in week {in_loss.week} of {in_loss.season}",
            {'opponent_id': in_loss.opponent_id, 'opponent_score': in_loss.points_against},
        ))

    in_win = _best(
        (g for g in games if g.result == MatchupResult.WIN and g.points_for > 0),
        lambda g: g.points_for,
        higher_is_better=False,
    )
    if in_win:
        records.append(_game_record(
            RecordType.FEWEST_POINTS_IN_WIN, in_win, in_win.points_for,
            f"{in_win.team_id} won with {in_win.points_for:g} points in week {in_win.week} of {in_win.season}",
            {'opponent_id': in_win.opponent_id, 'opponent_score': in_win.points_against},
        ))

    blowout = _best(
        (g for g in games if g.result == MatchupResult.WIN), lambda g: g.margin_of_victory
    )
    if blowout:
        records.append(_game_record(
            RecordType.BIGGEST_BLOWOUT, blowout, blowout.margin_of_victory,
            f"{blowout.team_id} won by {blowout.margin_of_victory:g} in week {blowout.week} of {blowout.season}",
            {'opponent_id': blowout.opponent_id, 'score': f"{blowout.points_for:g}-{blowout.points_against:g}"},
        ))

    return records


# =============================================================================
# Season Statistic Scans
# =============================================================================

def _season_records(season_stats: List[Mapping]) -> List[dict]:
    records = []

    win_streak = _best(season_stats, lambda s: s['longest_win_streak'] or None)
    if win_streak:
        records.append(_season_record(
            RecordType.LONGEST_WIN_STREAK, win_streak, 'longest_win_streak',
            f"{win_streak['team_id']} won {win_streak['longest_win_streak']} straight in {win_streak['season']}",
        ))

    loss_streak = _best(season_stats, lambda s: s.get('longest_loss_streak') or None)
    if loss_streak:
        records.append(_season_record(
            RecordType.LONGEST_LOSS_STREAK, loss_streak, 'longest_loss_streak',
            f"{loss_streak['team_id']} lost {loss_streak['longest_loss_streak']} straight in {loss_streak['season']}",
        ))

    most_wins = _best(season_stats, lambda s: s['wins'])
    if most_wins:
        ties = most_wins.get('ties') or 0
        record = f"{most_wins['wins']}-{most_wins['losses']}" + (f"-{ties}" if ties else '')
        records.append(_season_record(
            RecordType.MOST_WINS_SEASON, most_wins, 'wins',
            f"{most_wins['team_id']} went {record} in {most_wins['season']}",
            {'record': record},
        ))

    best_avg = _best(season_stats, lambda s: s.get('avg_points_for') or None)
    if best_avg:
        records.append(_season_record(
            RecordType.HIGHEST_SEASON_AVERAGE, best_avg, 'avg_points_for',
            f"{best_avg['team_id']} averaged {best_avg['avg_points_for']:g} in {best_avg['season']}",
            {'games_played': best_avg.get('games_played')},
        ))

    most_points = _best(season_stats, lambda s: s['points_for'])
    if most_points:
        records.append(_season_record(
            RecordType.HIGHEST_TOTAL_SEASON_POINTS, most_points, 'points_for',
            f"{most_points['team_id']} scored {most_points['points_for']:g} in {most_points['season']}",
        ))

    return records


# =============================================================================
# Championship Scans
# =============================================================================

def _championship_records(championships: List[Mapping]) -> List[dict]:
    counts = {}
    first_title = {}
    for champ in championships:
        champion = champ['champion_id']
        counts[champion] = counts.get(champion, 0) + 1
        first_title.setdefault(champion, champ['season'])

    if not counts:
        return []

    # Championships are visited in season order, so first_title is the earliest
    holder = min(counts, key=lambda team: (-counts[team], season_sort_key(first_title[team]), team))
    seasons = [c['season'] for c in championships if c['champion_id'] == holder]
    return [{
        'record_type': RecordType.MOST_CHAMPIONSHIPS.value,
        'record_holder_type': RecordHolderType.TEAM.value,
        'record_holder_id': holder,
        'record_value': float(counts[holder]),
        'season': None,
        'week': None,
        'description': f"{holder} has won {counts[holder]} championship(s)",
        'record_metadata': {'seasons': seasons},
    }]


def find_all_time_records(
    games: Iterable[GameResult],
    season_stats: Iterable[Mapping] = (),
    championships: Iterable[Mapping] = (),
) -> List[dict]:
    """
    Find every all-time record the league history supports.

    Args:
        games: All weekly results for the league, any order
        season_stats: SeasonStatistic dicts (output of the season analyzer)
        championships: ChampionshipRecord dicts

    Returns:
        List of AllTimeRecord field dicts, at most one per record type
    """
    ordered_games = sorted(games, key=lambda g: (g.sort_key, g.team_id))
    ordered_stats = sorted(season_stats, key=lambda s: (season_sort_key(s['season']), s['team_id']))
    ordered_champs = sorted(championships, key=lambda c: season_sort_key(c['season']))

    records = (
        _weekly_records(ordered_games)
        + _season_records(ordered_stats)
        + _championship_records(ordered_champs)
    )
    logger.debug(f"Found {len(records)} all-time records")
    return records
