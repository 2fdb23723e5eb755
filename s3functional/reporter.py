"""
Structured test results

Each finished test produces one JSON line:

    {"name": "s3functional", "function": "test_x", "args": {...},
     "duration": 12, "status": "PASS", "message": ..., "error": ...}

Lines go to the "s3functional.results" logger and, when a results log is
configured, are appended to that file.
"""

import json
import logging
import threading
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger("s3functional.results")

PASS = "PASS"
FAIL = "FAIL"
NA = "NA"


@dataclass
class Result:
    function: str
    status: str
    duration: int = 0
    args: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    error: Optional[str] = None
    name: str = "s3functional"

    def to_json(self) -> str:
        entry = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(entry, sort_keys=True, default=str)


class Reporter:
    """
    Collects results for a session

    Args:
        path: results log to append JSON lines to, or None
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.results = []
        self._lock = threading.Lock()

    def record(self, result: Result) -> Result:
        line = result.to_json()
        with self._lock:
            self.results.append(result)
            if self.path:
                with open(self.path, "a") as f:
                    f.write(line + "\n")
        if result.status == FAIL:
            logger.error(line)
        else:
            logger.info(line)
        return result

    def passed(self, function: str, duration: float, args=None) -> Result:
        return self.record(Result(function, PASS, _ms(duration), args or {}))

    def failed(self, function: str, duration: float, message: str, error=None, args=None) -> Result:
        return self.record(
            Result(function, FAIL, _ms(duration), args or {}, message,
                   str(error) if error is not None else None)
        )

    def not_applicable(self, function: str, duration: float, message: str, args=None) -> Result:
        return self.record(Result(function, NA, _ms(duration), args or {}, message))

    def summary(self) -> Dict[str, Any]:
        return summarize(r.to_json() for r in self.results)


def _ms(seconds: float) -> int:
    return int(round(seconds * 1000))


def summarize(lines: Iterable[str]) -> Dict[str, Any]:
    """Totals, per-status counts and pass rate of a results log"""
    counts = Counter()
    duration = 0
    failures = []
    for line in lines:
        line = line.strip()
        if not line:
            continue
        entry = json.loads(line)
        counts[entry.get("status", FAIL)] += 1
        duration += entry.get("duration", 0)
        if entry.get("status") == FAIL:
            failures.append(entry.get("function"))

    total = sum(counts.values())
    return {
        "total": total,
        "passed": counts[PASS],
        "failed": counts[FAIL],
        "na": counts[NA],
        "duration": duration,
        "pass_rate": (counts[PASS] / total * 100) if total > 0 else 0,
        "failures": failures,
    }
