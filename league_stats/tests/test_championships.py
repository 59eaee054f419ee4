"""
Tests for the championship analyzer.

Run with: python -m pytest league_stats/tests/test_championships.py -v
"""

from league_stats.analyzers import compute_championship_records
from league_stats.tests.factories import make_game, make_matchup


class TestChampionshipRecords:
    """Test championship resolution per season."""

    def test_higher_score_is_champion(self):
        """Test higher score is champion."""
        games = make_matchup('A', 'B', 17, 140, 130, is_playoff=True, is_championship=True)

        [record] = compute_championship_records(games)

        assert record['champion_id'] == 'A'
        assert record['runner_up_id'] == 'B'
        assert record['championship_score'] == 140
        assert record['runner_up_score'] == 130
        assert record['championship_week'] == 17

    def test_unflagged_games_are_ignored(self):
        """Test unflagged games are ignored."""
        games = make_matchup('A', 'B', 3, 150, 90) + make_matchup(
            'C', 'D', 17, 100, 120, is_championship=True
        )

        [record] = compute_championship_records(games)

        assert record['champion_id'] == 'D'

    def test_season_with_one_flagged_row_is_skipped(self):
        """Test season with one flagged row is skipped."""
        games = [make_game('A', 17, 140, 130, opponent_id='B', is_championship=True)]

        assert compute_championship_records(games) == []

    def test_season_with_extra_flagged_rows_is_skipped(self):
        """Test season with extra flagged rows is skipped."""
        games = (
            make_matchup('A', 'B', 17, 140, 130, is_championship=True)
            + [make_game('C', 17, 100, is_championship=True)]
        )

        assert compute_championship_records(games) == []

    def test_tied_championship_is_skipped(self):
        """Test tied championship is skipped."""
        games = make_matchup('A', 'B', 17, 120, 120, is_championship=True)

        assert compute_championship_records(games) == []

    def test_one_record_per_season(self):
        """Test one record per season."""
        games = (
            make_matchup('A', 'B', 17, 140, 130, season='2024', is_championship=True)
            + make_matchup('C', 'A', 16, 110, 115, season='2023', is_championship=True)
            + make_matchup('B', 'C', 17, 99, 101, season='2022')
        )

        records = compute_championship_records(games)

        assert [(r['season'], r['champion_id']) for r in records] == [('2023', 'A'), ('2024', 'A')]
