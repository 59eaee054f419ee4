"""
Plain value type for a weekly game result.

The analyzers work on GameResult instances rather than ORM rows so they
can be exercised without a database session.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class GameResult:
    """One team's outcome for one week of one season."""
    league_id: str
    season: str
    week: int
    team_id: str
    opponent_id: Optional[str]
    points_for: float
    points_against: float
    result: Optional[str]
    is_playoff: bool = False
    is_championship: bool = False
    margin_of_victory: float = 0.0
    created_at: Optional[datetime] = None

    @property
    def sort_key(self):
        """Chronological position of the game."""
        return (season_sort_key(self.season), self.week)

    @classmethod
    def from_row(cls, row: Any) -> 'GameResult':
        """
        Build a GameResult from a WeeklyResult row (or any object with the
        same attributes), normalizing missing values.
        """
        points_for = float(row.points_for or 0)
        points_against = float(row.points_against or 0)
        margin = row.margin_of_victory
        return cls(
            league_id=row.league_id,
            season=str(row.season),
            week=int(row.week),
            team_id=row.team_id,
            opponent_id=row.opponent_id,
            points_for=points_for,
            points_against=points_against,
            result=row.result,
            is_playoff=bool(row.is_playoff),
            is_championship=bool(row.is_championship),
            margin_of_victory=float(margin) if margin is not None else points_for - points_against,
            created_at=row.created_at,
        )


def season_sort_key(season: str):
    """
    Sort key for season tokens.

    Numeric seasons ('2023', '2024') sort numerically; anything else sorts
    after them lexicographically.
    """
    token = str(season)
    if token.isdigit():
        return (0, int(token), token)
    return (1, 0, token)
