"""Application constants."""

USER_AGENT = "school-distances/0.3 (+analysis; contact: configured-email)"
STAGES = (
    "sample",
    "lookup",
    "report",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20

METRES_PER_KILOMETRE = 1000
MILES_PER_KILOMETRE = 0.621371
SECONDS_PER_MINUTE = 60

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "group",
    "source",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
