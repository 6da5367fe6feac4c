"""Application constants."""

USER_AGENT = "nearby-zipcodes/1.0 (+research; contact: configured-email)"
COMMANDS = (
    "fetch",
    "run",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20

GEONAMES_FIELD_COUNT = 12
MEAN_EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_AT_EQUATOR = 111.32

DEFAULT_RADIUS_KM = 25.0
DEFAULT_HALF_WIDTH_DEG = 0.25
DEFAULT_WORKER_MULTIPLIER = 4
DEFAULT_NODE_CAPACITY = 10
QUEUE_SLOTS_PER_WORKER = 2

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
