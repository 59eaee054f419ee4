"""
Shared enumerations and constants for the League Statistics Engine.

String-valued enums are used so that values read back from the database
compare equal to the enum members.
"""

from enum import Enum


class MatchupResult(str, Enum):
    """Outcome of a single weekly matchup from one team's perspective."""
    WIN = 'WIN'
    LOSS = 'LOSS'
    TIE = 'TIE'


class CalculationType(str, Enum):
    """Kinds of calculation a caller can request."""
    ALL = 'ALL'
    SEASON = 'SEASON'
    HEAD_TO_HEAD = 'HEAD_TO_HEAD'
    ALL_TIME = 'ALL_TIME'
    TRENDS = 'TRENDS'
    CHAMPIONSHIP = 'CHAMPIONSHIP'


class RecordType(str, Enum):
    """All-time record categories."""
    HIGHEST_SINGLE_GAME_SCORE = 'HIGHEST_SINGLE_GAME_SCORE'
    LOWEST_SINGLE_GAME_SCORE = 'LOWEST_SINGLE_GAME_SCORE'
    HIGHEST_PLAYOFF_SCORE = 'HIGHEST_PLAYOFF_SCORE'
    MOST_POINTS_IN_LOSS = 'MOST_POINTS_IN_LOSS'
    FEWEST_POINTS_IN_WIN = 'FEWEST_POINTS_IN_WIN'
    BIGGEST_BLOWOUT = 'BIGGEST_BLOWOUT'
    LONGEST_WIN_STREAK = 'LONGEST_WIN_STREAK'
    LONGEST_LOSS_STREAK = 'LONGEST_LOSS_STREAK'
    MOST_WINS_SEASON = 'MOST_WINS_SEASON'
    HIGHEST_SEASON_AVERAGE = 'HIGHEST_SEASON_AVERAGE'
    HIGHEST_TOTAL_SEASON_POINTS = 'HIGHEST_TOTAL_SEASON_POINTS'
    MOST_CHAMPIONSHIPS = 'MOST_CHAMPIONSHIPS'


class RecordHolderType(str, Enum):
    TEAM = 'TEAM'
    PLAYER = 'PLAYER'


class TrendDirection(str, Enum):
    UP = 'UP'
    DOWN = 'DOWN'
    STABLE = 'STABLE'


class PeriodType(str, Enum):
    WEEKLY = 'WEEKLY'
    MONTHLY = 'MONTHLY'
    SEASONAL = 'SEASONAL'


class CalculationStatus(str, Enum):
    """Status values written to the calculation audit log."""
    PENDING = 'PENDING'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'


# =============================================================================
# Job Priorities
# =============================================================================

# Lower number runs first
PRIORITY_FULL_RECOMPUTE = 1
PRIORITY_SINGLE_TYPE = 10


# =============================================================================
# Cache TTL Values (in seconds)
# =============================================================================

class CacheTTL:
    """Default TTL values for cached statistics."""

    # Snapshots written after a calculation run
    STATISTICS = 3600  # 1 hour

    # Fallback when no TTL is given
    DEFAULT = 300  # 5 minutes


# =============================================================================
# Cache Keys and Channels
# =============================================================================

CACHE_KEY_PREFIX = 'stats'

CHANNEL_CALCULATE = 'stats:calculate'
CHANNEL_PROGRESS = 'stats:progress'
CHANNEL_COMPLETE = 'stats:complete'
CHANNEL_FAILED = 'stats:failed'
