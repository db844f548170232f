"""Internal constants shared across the library."""

MIN_LEVEL = 0
MAX_LEVEL = 100
LEVELS: range = range(MIN_LEVEL, MAX_LEVEL + 1)

#: Seconds per percent assumed for a vehicle/location with no history at all
#: (20 minutes per percent).
DEFAULT_SECONDS_PER_PERCENT: float = 20 * 60

#: How often the orphan sample sweeper runs by default (1 hour).
DEFAULT_MAINTENANCE_INTERVAL: float = 3600.0

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///chargecurve.db"
