"""
Tests for the season statistics analyzer.

Run with: python -m pytest league_stats/tests/test_season_analyzer.py -v
"""

import pytest

from league_stats.analyzers import StreakTracker, compute_season_statistics
from league_stats.tests.factories import make_game


class TestStreakTracker:
    """Test the streak state machine."""

    def test_win_streak_extends(self):
        """Test win streak extends."""
        tracker = StreakTracker()
        for result in ('WIN', 'WIN', 'WIN'):
            tracker.record(result)

        assert tracker.current_type == 'WIN'
        assert tracker.current_count == 3
        assert tracker.longest_win == 3

    def test_loss_resets_win_streak(self):
        """Test loss resets win streak."""
        tracker = StreakTracker()
        for result in ('WIN', 'WIN', 'LOSS'):
            tracker.record(result)

        assert tracker.current_type == 'LOSS'
        assert tracker.current_count == 1
        assert tracker.longest_win == 2

    def test_tie_breaks_streak_without_counting(self):
        """Test tie breaks streak without counting."""
        tracker = StreakTracker()
        for result in ('WIN', 'WIN', 'TIE', 'WIN'):
            tracker.record(result)

        assert tracker.current_type == 'WIN'
        assert tracker.current_count == 1
        assert tracker.longest_win == 2

    def test_consecutive_ties_stay_at_one(self):
        """Test consecutive ties stay at one."""
        tracker = StreakTracker()
        tracker.record('TIE')
        tracker.record('TIE')

        assert tracker.current_type == 'TIE'
        assert tracker.current_count == 1
        assert tracker.longest_win == 0

    def test_longest_loss_streak(self):
        """Test longest loss streak."""
        tracker = StreakTracker()
        for result in ('LOSS', 'LOSS', 'WIN', 'LOSS', 'LOSS', 'LOSS'):
            tracker.record(result)

        assert tracker.longest_loss == 3
        assert tracker.longest_win == 1


class TestComputeSeasonStatistics:
    """Test per-team season aggregation."""

    def test_three_wins_then_loss(self):
        """Test three wins then loss."""
        games = [
            make_game('A', 1, 120), make_game('A', 2, 110),
            make_game('A', 3, 105), make_game('A', 4, 90),
        ]
        [row] = compute_season_statistics(games)

        assert row['wins'] == 3
        assert row['losses'] == 1
        assert row['longest_win_streak'] == 3
        assert row['current_streak_type'] == 'LOSS'
        assert row['current_streak_count'] == 1

    def test_unordered_input_is_sorted_by_week(self):
        """Test unordered input is sorted by week."""
        games = [
            make_game('A', 4, 90), make_game('A', 2, 110),
            make_game('A', 1, 120), make_game('A', 3, 105),
        ]
        [row] = compute_season_statistics(games)

        assert row['longest_win_streak'] == 3
        assert row['current_streak_type'] == 'LOSS'

    def test_tie_in_the_middle(self):
        """Test tie in the middle."""
        games = [
            make_game('A', 1, 120), make_game('A', 2, 110),
            make_game('A', 3, 100), make_game('A', 4, 130),
        ]
        [row] = compute_season_statistics(games)

        assert row['ties'] == 1
        assert row['longest_win_streak'] == 2
        assert row['current_streak_type'] == 'WIN'
        assert row['current_streak_count'] == 1

    def test_scoring_aggregates(self):
        """Test scoring aggregates."""
        games = [
            make_game('A', 1, 120, 100), make_game('A', 2, 80, 100),
            make_game('A', 3, 100, 90),
        ]
        [row] = compute_season_statistics(games)

        assert row['games_played'] == 3
        assert row['points_for'] == 300
        assert row['points_against'] == 290
        assert row['avg_points_for'] == 100
        assert row['highest_score'] == 120
        assert row['lowest_score'] == 80
        assert row['total_margin'] == 10
        assert row['largest_margin'] == 20
        assert row['points_std_dev'] == pytest.approx(16.33, abs=0.01)

    def test_lowest_score_ignores_zero(self):
        """Test lowest score ignores zero."""
        games = [make_game('A', 1, 0), make_game('A', 2, 95)]
        [row] = compute_season_statistics(games)

        assert row['lowest_score'] == 95

    def test_one_row_per_team_and_season(self):
        """Test one row per team and season."""
        games = [
            make_game('A', 1, 120), make_game('B', 1, 90),
            make_game('A', 1, 100, 110, season='2023'),
        ]
        rows = compute_season_statistics(games)

        assert [(r['season'], r['team_id']) for r in rows] == [
            ('2023', 'A'), ('2024', 'A'), ('2024', 'B')
        ]

    def test_no_games(self):
        """Test no games."""
        assert compute_season_statistics([]) == []
