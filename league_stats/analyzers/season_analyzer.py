"""
Season Statistics Analyzer.

Reduces a league's weekly results into one standings row per team and
season:
- Win/loss/tie record and scoring totals
- Scoring averages, standard deviation, high and low scores
- Margin of victory aggregates
- Current streak and longest win/loss streaks

Streak detection depends on chronological order, so results are always
re-sorted by week before they are reduced; storage order is never trusted.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from league_stats.analyzers.game_result import GameResult, season_sort_key
from league_stats.constants import MatchupResult

logger = logging.getLogger(__name__)


@dataclass
class StreakTracker:
    """
    Streak state machine for one team's season.

    A WIN extends a win streak or starts a new one; a LOSS does the same for
    loss streaks. A TIE starts a TIE streak of one, which breaks either kind
    of streak without counting toward the longest win or loss streak.
    """
    current_type: Optional[str] = None
    current_count: int = 0
    longest_win: int = 0
    longest_loss: int = 0

    def record(self, result: Optional[str]) -> None:
        if result is None:
            return

        if result == MatchupResult.WIN:
            self._extend(MatchupResult.WIN.value)
            self.longest_win = max(self.longest_win, self.current_count)
        elif result == MatchupResult.LOSS:
            self._extend(MatchupResult.LOSS.value)
            self.longest_loss = max(self.longest_loss, self.current_count)
        elif result == MatchupResult.TIE:
            self.current_type = MatchupResult.TIE.value
            self.current_count = 1

    def _extend(self, result_type: str) -> None:
        if self.current_type == result_type:
            self.current_count += 1
        else:
            self.current_type = result_type
            self.current_count = 1


@dataclass
class TeamSeasonAccumulator:
    """Running totals for one team in one season."""
    league_id: str
    season: str
    team_id: str
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    scores: List[float] = field(default_factory=list)
    margins: List[float] = field(default_factory=list)
    largest_margin: float = 0.0
    streak: StreakTracker = field(default_factory=StreakTracker)

    def add(self, game: GameResult) -> None:
        self.points_for += game.points_for
        self.points_against += game.points_against
        self.scores.append(game.points_for)
        self.margins.append(game.margin_of_victory)

        if game.result == MatchupResult.WIN:
            self.wins += 1
            self.largest_margin = max(self.largest_margin, game.margin_of_victory)
        elif game.result == MatchupResult.LOSS:
            self.losses += 1
        elif game.result == MatchupResult.TIE:
            self.ties += 1

        self.streak.record(game.result)

    def to_record(self) -> dict:
        """Finalize the accumulator into a SeasonStatistic field dict."""
        games_played = self.wins + self.losses + self.ties
        scores = np.array(self.scores, dtype=float)
        positive = scores[scores > 0]

        avg_for = self.points_for / games_played if games_played else 0.0
        avg_against = self.points_against / games_played if games_played else 0.0
        total_margin = float(sum(self.margins))

        return {
            'league_id': self.league_id,
            'season': self.season,
            'team_id': self.team_id,
            'games_played': games_played,
            'wins': self.wins,
            'losses': self.losses,
            'ties': self.ties,
            'points_for': round(self.points_for, 2),
            'points_against': round(self.points_against, 2),
            'avg_points_for': round(avg_for, 2),
            'avg_points_against': round(avg_against, 2),
            # Population standard deviation around the scoring average
            'points_std_dev': round(float(scores.std()), 2) if games_played else 0.0,
            'highest_score': float(scores.max()) if scores.size else 0.0,
            'lowest_score': float(positive.min()) if positive.size else 0.0,
            'total_margin': round(total_margin, 2),
            'avg_margin': round(total_margin / games_played, 2) if games_played else 0.0,
            'largest_margin': round(self.largest_margin, 2),
            'current_streak_type': self.streak.current_type,
            'current_streak_count': self.streak.current_count,
            'longest_win_streak': self.streak.longest_win,
            'longest_loss_streak': self.streak.longest_loss,
        }


def compute_season_statistics(games: Iterable[GameResult]) -> List[dict]:
    """
    Compute season statistics for every (team, season) present in games.

    Args:
        games: Weekly results in any order, for one or more seasons

    Returns:
        List of SeasonStatistic field dicts, ordered by season then team
    """
    grouped: Dict[Tuple[str, str], List[GameResult]] = defaultdict(list)
    for game in games:
        grouped[(game.season, game.team_id)].append(game)

    records = []
    for (season, team_id) in sorted(grouped, key=lambda k: (season_sort_key(k[0]), k[1])):
        team_games = sorted(grouped[(season, team_id)], key=lambda g: g.week)
        accumulator = TeamSeasonAccumulator(
            league_id=team_games[0].league_id,
            season=season,
            team_id=team_id,
        )
        for game in team_games:
            accumulator.add(game)
        records.append(accumulator.to_record())

    logger.debug(f"Computed {len(records)} team-season statistic rows")
    return records
