"""
Tests for the all-time records analyzer.

Run with: python -m pytest league_stats/tests/test_records.py -v
"""

from league_stats.analyzers import compute_season_statistics, find_all_time_records
from league_stats.tests.factories import make_game, make_matchup


def _by_type(records):
    return {r['record_type']: r for r in records}


class TestWeeklyRecords:
    """Test records scanned from weekly results."""

    def test_empty_history_has_no_records(self):
        """Test empty history has no records."""
        assert find_all_time_records([]) == []

    def test_single_game_extremes(self):
        """Test single game extremes."""
        games = (
            make_matchup('A', 'B', 1, 150, 80)
            + make_matchup('A', 'B', 2, 95, 110)
            + make_matchup('C', 'D', 1, 0, 60)
        )

        records = _by_type(find_all_time_records(games))

        highest = records['HIGHEST_SINGLE_GAME_SCORE']
        assert highest['record_holder_id'] == 'A'
        assert highest['record_value'] == 150
        assert highest['week'] == 1

        # Zero is a forfeit, not a record
        lowest = records['LOWEST_SINGLE_GAME_SCORE']
        assert lowest['record_holder_id'] == 'D'
        assert lowest['record_value'] == 60

        assert records['MOST_POINTS_IN_LOSS']['record_value'] == 95
        assert records['FEWEST_POINTS_IN_WIN']['record_value'] == 60
        assert records['BIGGEST_BLOWOUT']['record_value'] == 70
        assert records['BIGGEST_BLOWOUT']['record_holder_id'] == 'A'

    def test_ties_keep_earliest_instance(self):
        """Test ties keep earliest instance."""
        games = [
            make_game('B', 5, 140, season='2024'),
            make_game('A', 2, 140, season='2024'),
            make_game('C', 9, 140, season='2023'),
        ]

        record = _by_type(find_all_time_records(games))['HIGHEST_SINGLE_GAME_SCORE']

        assert record['record_holder_id'] == 'C'
        assert record['season'] == '2023'

    def test_playoff_score_requires_playoff_game(self):
        """Test playoff score requires playoff game."""
        games = [make_game('A', 1, 160), make_game('B', 15, 120, is_playoff=True)]

        record = _by_type(find_all_time_records(games))['HIGHEST_PLAYOFF_SCORE']

        assert record['record_holder_id'] == 'B'
        assert record['record_value'] == 120

    def test_records_are_team_held(self):
        """Test records are team held."""
        records = find_all_time_records([make_game('A', 1, 120)])

        assert records
        assert all(r['record_holder_type'] == 'TEAM' for r in records)
        assert all(r['description'] for r in records)


class TestSeasonAndChampionshipRecords:
    """Test records derived from season statistics and championships."""

    def test_season_records(self):
        """Test season records."""
        games = [
            make_game('A', 1, 120), make_game('A', 2, 130), make_game('A', 3, 110),
            make_game('B', 1, 90), make_game('B', 2, 80), make_game('B', 3, 140),
        ]
        season_stats = compute_season_statistics(games)

        records = _by_type(find_all_time_records(games, season_stats=season_stats))

        assert records['LONGEST_WIN_STREAK']['record_holder_id'] == 'A'
        assert records['LONGEST_WIN_STREAK']['record_value'] == 3
        assert records['LONGEST_LOSS_STREAK']['record_holder_id'] == 'B'
        assert records['MOST_WINS_SEASON']['record_metadata'] == {'record': '3-0'}
        assert records['HIGHEST_SEASON_AVERAGE']['record_value'] == 120
        assert records['HIGHEST_TOTAL_SEASON_POINTS']['record_value'] == 360

    def test_most_championships(self):
        """Test most championships."""
        championships = [
            {'season': '2021', 'champion_id': 'B'},
            {'season': '2022', 'champion_id': 'A'},
            {'season': '2023', 'champion_id': 'A'},
            {'season': '2024', 'champion_id': 'B'},
        ]

        [record] = find_all_time_records([], championships=championships)

        # Two titles each; B won first
        assert record['record_type'] == 'MOST_CHAMPIONSHIPS'
        assert record['record_holder_id'] == 'B'
        assert record['record_value'] == 2
        assert record['record_metadata'] == {'seasons': ['2021', '2024']}
