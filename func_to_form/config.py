from __future__ import annotations

# Keys and component ids
FORM_PREFIX = "f2f"
KEY_SEPARATOR = "."
NAME_PATTERN = r"^[A-Za-z_][0-9A-Za-z_]*$"
LOCATION_ID = "f2f-location"
FORM_TYPE = "f2f-form"
INPUT_TYPE = "f2f-input"
ERROR_TYPE = "f2f-error"
HELP_TYPE = "f2f-help"
HELP_TOGGLE_TYPE = "f2f-help-toggle"
RUN_TYPE = "f2f-run"
OSTREAM_TYPE = "f2f-ostream"
CHECKBOX_ON = "on"
CHECKBOX_OFF = "off"
RUN_LABEL = "Run"
HELP_LABEL = "?"

# Output lanes: kind -> container category
LANE_CATEGORIES = {
    "log": "block",
    "misc": "block",
    "separator": "block",
    "table": "tabular",
    "svg": "vector",
}
LINE_TAGS = ("info", "warn", "error", "debug", "success")

# CSS hooks (styling itself lives outside the engine)
FORM_CLASS = "f2f-form"
FIELD_CLASS = "inputWrap"
ERROR_CLASS = "f2f-field-error"
HELP_CLASS = "f2f-help"
OSTREAM_CLASS = "f2f-ostream"
LANE_CLASS = "f2f-lane"
LOG_LINE_CLASS = "f2f-log-line"

# Logging and tracing
SCHEMA_VERSION = 1
TRACE_HISTORY_CAPACITY = 50
TRACE_COLUMNS = [
    "schema_version",
    "session_id",
    "seq",
    "timestamp",
    "elapsed_time_ms",
    "event",
    "form",
    "fields",
    "search",
    "error",
    "traceback",
]

# Demo sampling grid
X_MIN = -10.0
X_MAX = 10.0
EPS_ZERO = 1e-6
