"""
Test data factories.
"""

from league_stats.analyzers import GameResult


def make_game(team_id, week, points_for, points_against=100.0, result=None,
              opponent_id='opp', season='2024', league_id='league-1', **kwargs):
    """Build a GameResult; the result is derived from the score unless given."""
    if result is None:
        if points_for > points_against:
            result = 'WIN'
        elif points_for < points_against:
            result = 'LOSS'
        else:
            result = 'TIE'
    return GameResult(
        league_id=league_id,
        season=season,
        week=week,
        team_id=team_id,
        opponent_id=opponent_id,
        points_for=points_for,
        points_against=points_against,
        result=result,
        margin_of_victory=kwargs.pop('margin_of_victory', points_for - points_against),
        **kwargs
    )


def make_matchup(team_a, team_b, week, score_a, score_b, season='2024', league_id='league-1', **kwargs):
    """Both mirrored rows of one physical game."""
    return [
        make_game(team_a, week, score_a, score_b, opponent_id=team_b,
                  season=season, league_id=league_id, **kwargs),
        make_game(team_b, week, score_b, score_a, opponent_id=team_a,
                  season=season, league_id=league_id, **kwargs),
    ]
