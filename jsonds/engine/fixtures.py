"""Fixed payloads served by the stub endpoints.

Search and query do not compute anything; they return the same shapes a real
metrics backend would so that the front-end can render panels.
"""
import time
from typing import List

SEARCH_TARGETS = ["hello", "apple", "python", "golang", "base", "peach", "pear"]

# Tokens pushed over the /echo websocket.
PUSH_TOKENS = list(SEARCH_TARGETS)

SERIES_TARGET = "abc"
SERIES_POINTS = ((622, 0), (365, 1000 * 1000))  # (value, offset from now in ms)

def search_targets() -> List[str]:
    return list(SEARCH_TARGETS)

def time_series(now: float | None = None) -> List[dict]:
    """Return the single `abc` series anchored at `now` (whole seconds, as millis)."""
    if now is None:
        now = time.time()
    ts = int(now) * 1000
    return [{
        "target": SERIES_TARGET,
        "datapoints": [[value, ts + offset] for value, offset in SERIES_POINTS],
    }]
