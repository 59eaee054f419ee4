#!/usr/bin/env python3
"""
Statistics Calculation Script.

Runs statistics calculations synchronously, without the background worker.
Useful after a bulk import of weekly results or from a cron job.

Usage:
    python -m league_stats.scripts.calculate_statistics --league league-1

    # Only one statistic family
    python -m league_stats.scripts.calculate_statistics --league league-1 --type HEAD_TO_HEAD

    # One season
    python -m league_stats.scripts.calculate_statistics --league league-1 --type SEASON --season 2024

    # Every league with weekly results
    python -m league_stats.scripts.calculate_statistics --all-leagues
"""

import argparse
import os
import sys


def setup_app():
    """Set up Flask app context for database access."""
    # Calculations run inline; no worker pool needed
    os.environ['STATS_WORKER_ENABLED'] = 'false'
    from league_stats.app import create_app
    app = create_app()
    return app


def run_calculation(engine, league_id: str, calculation_type: str, season: str = None) -> int:
    """Run one calculation and print its result."""
    request = {
        'league_id': league_id,
        'calculation_type': calculation_type,
        'season_id': season,
    }

    print(f"\n{'='*60}")
    print(f"  {calculation_type} STATISTICS: {league_id}")
    print(f"{'='*60}")
    if season:
        print(f"\n  Season: {season}")

    try:
        result = engine.run_calculation(request)
    except Exception as e:
        print(f"\n  ERROR: {e}")
        import traceback
        traceback.print_exc()
        return 1

    print(f"\n  Records processed: {result['records_processed']}")
    breakdown = (result.get('data') or {}).get('breakdown')
    if breakdown:
        print(f"\n  Breakdown:")
        for name, count in breakdown.items():
            print(f"    {name}: {count}")
    print()
    return 0


def list_leagues(engine) -> int:
    """List leagues that have weekly results."""
    league_ids = engine.repository.get_league_ids()

    print(f"\n{'='*60}")
    print(f"  LEAGUES WITH WEEKLY RESULTS")
    print(f"{'='*60}")

    if not league_ids:
        print("\n  No weekly results found in database.")
    else:
        print()
        for league_id in league_ids:
            print(f"  {league_id}")

    print()
    return 0


def main():
    from league_stats.constants import CalculationType

    parser = argparse.ArgumentParser(
        description='Calculate league statistics from stored weekly results.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Full recompute for one league
    python -m league_stats.scripts.calculate_statistics --league league-1

    # Trends only
    python -m league_stats.scripts.calculate_statistics --league league-1 --type TRENDS

    # List leagues
    python -m league_stats.scripts.calculate_statistics --list-leagues
        """
    )

    parser.add_argument(
        '--league', '-l',
        help='League identifier to calculate'
    )
    parser.add_argument(
        '--type', '-t',
        default=CalculationType.ALL.value,
        choices=[t.value for t in CalculationType],
        help='Calculation type (default: ALL)'
    )
    parser.add_argument(
        '--season', '-s',
        help='Season for SEASON calculations (default: all seasons)'
    )
    parser.add_argument(
        '--all-leagues',
        action='store_true',
        help='Calculate every league with weekly results'
    )
    parser.add_argument(
        '--list-leagues',
        action='store_true',
        help='List leagues with weekly results'
    )

    args = parser.parse_args()

    # Validate arguments
    if not args.league and not args.all_leagues and not args.list_leagues:
        parser.print_help()
        print("\nError: Must specify --league, --all-leagues, or --list-leagues")
        return 1

    # Set up Flask app context
    app = setup_app()

    from league_stats.services.statistics_engine import get_engine

    with app.app_context():
        engine = get_engine(app)
        try:
            if args.list_leagues:
                return list_leagues(engine)

            league_ids = engine.repository.get_league_ids() if args.all_leagues else [args.league]
            failures = 0
            for league_id in league_ids:
                failures += run_calculation(engine, league_id, args.type, args.season)
            return 1 if failures else 0
        finally:
            engine.shutdown()


if __name__ == '__main__':
    sys.exit(main())
