import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./event_explorer.db")

# Redis configuration
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
EVENT_LOCK_TIMEOUT_SECONDS = float(os.getenv("EVENT_LOCK_TIMEOUT_SECONDS", "10"))
EVENT_LOCK_BLOCKING_TIMEOUT_SECONDS = float(os.getenv("EVENT_LOCK_BLOCKING_TIMEOUT_SECONDS", "5"))

# Stats collector configuration
STATS_SERVER_URL = os.getenv("STATS_SERVER_URL", "http://localhost:9090")
STATS_APP_NAME = os.getenv("STATS_APP_NAME", "event-explorer")
STATS_TIMEOUT_SECONDS = float(os.getenv("STATS_TIMEOUT_SECONDS", "5"))
ENRICHMENT_WAIT_SECONDS = float(os.getenv("ENRICHMENT_WAIT_SECONDS", "5"))

EVENT_DATE_MIN_LEAD_HOURS = float(os.getenv("EVENT_DATE_MIN_LEAD_HOURS", "2"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_database_url():
    return DATABASE_URL


def get_redis_url():
    return REDIS_URL


def get_stats_server_url():
    return STATS_SERVER_URL
