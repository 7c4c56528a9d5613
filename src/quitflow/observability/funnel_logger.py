"""
QuitFlow - Funnel Logger.

Lightweight observability for the onboarding funnel.

Features:
- One JSONL file per session (easy to parse, tail -f friendly)
- Step entry/exit with timing
- Gateway call summaries (name, duration, error)
- Credential fields redacted, large values truncated

Usage:
    from quitflow.observability import FunnelLogger

    funnel = FunnelLogger(log_dir=Path("funnel_logs"))
    funnel.step_enter("offer", {"flash_sale": False})
    funnel.step_exit("offer")
    funnel.close()

Log format (JSONL):
    {"ts": "2026-01-01T17:30:00", "event": "step_enter", "step": "offer", ...}
"""

import json
import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_LOG_DIR = Path("funnel_logs")

# Max string length before truncation
MAX_STRING_LEN = 200

# Max list items to show
MAX_LIST_ITEMS = 5

# Max dict keys to show
MAX_DICT_KEYS = 10

# Never written to disk, whatever the nesting
REDACTED_FIELDS = {"password", "confirm_password", "token", "authorization"}


# =============================================================================
# Smart Truncation
# =============================================================================


def _truncate_value(value: Any, depth: int = 0) -> Any:
    """
    Smart truncation of values for logging.

    - Strings > MAX_STRING_LEN get truncated with "..."
    - Lists > MAX_LIST_ITEMS show first N + count
    - Dicts > MAX_DICT_KEYS show first N keys + count
    - Credential keys are replaced with "<redacted>"
    - Enums log their value
    """
    if depth > 3:
        return "<nested>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > MAX_STRING_LEN:
            return value[:MAX_STRING_LEN] + f"... ({len(value)} chars)"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (list, tuple)):
        if len(value) <= MAX_LIST_ITEMS:
            return [_truncate_value(v, depth + 1) for v in value]
        truncated = [_truncate_value(v, depth + 1) for v in value[:MAX_LIST_ITEMS]]
        return truncated + [f"... +{len(value) - MAX_LIST_ITEMS} more"]

    if isinstance(value, dict):
        result = {}
        for k in list(value.keys())[:MAX_DICT_KEYS]:
            if str(k).lower() in REDACTED_FIELDS:
                result[k] = "<redacted>"
            else:
                result[k] = _truncate_value(value[k], depth + 1)
        if len(value) > MAX_DICT_KEYS:
            result["_truncated"] = f"+{len(value) - MAX_DICT_KEYS} keys"
        return result

    if isinstance(value, Enum):
        return value.value

    # Anything else: log the text form
    return _truncate_value(str(value), depth)


# =============================================================================
# Funnel Logger
# =============================================================================


class FunnelLogger:
    """Per-session logger that writes JSONL to a file."""

    def __init__(
        self,
        session_id: str | None = None,
        log_dir: Path | str = DEFAULT_LOG_DIR,
        enabled: bool = True,
    ):
        """
        Initialize funnel logger.

        Args:
            session_id: Optional custom session ID. Default: timestamp-based.
            log_dir: Directory for JSONL files, created on demand.
            enabled: If False, all logging is no-op.
        """
        self.enabled = enabled

        # Always initialize tracking attributes (needed even when disabled)
        self._step_start_times: dict[str, float] = {}
        self._steps_entered = 0

        if not enabled:
            self.log_file = None
            return

        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        if session_id is None:
            session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        self.session_id = session_id
        self.log_path = log_dir / f"funnel_{session_id}.jsonl"
        self.log_file = open(self.log_path, "a", encoding="utf-8")

        self._write({
            "event": "session_start",
            "session_id": session_id,
        })

    def _write(self, data: dict) -> None:
        """Write a log entry."""
        if not self.enabled or self.log_file is None:
            return

        entry = {
            "ts": datetime.now().isoformat(),
            **data,
        }
        self.log_file.write(json.dumps(entry, default=str) + "\n")
        self.log_file.flush()

    # =========================================================================
    # Step Events
    # =========================================================================

    def step_enter(self, step: str, details: dict | None = None) -> None:
        """Log entry into a funnel step."""
        self._step_start_times[step] = time.time()
        self._steps_entered += 1

        self._write({
            "event": "step_enter",
            "step": step,
            "details": _truncate_value(details) if details else None,
        })

    def step_exit(self, step: str, reason: str | None = None) -> None:
        """Log exit from a funnel step with time spent on it."""
        start = self._step_start_times.pop(step, None)
        duration_ms = int((time.time() - start) * 1000) if start else None

        self._write({
            "event": "step_exit",
            "step": step,
            "duration_ms": duration_ms,
            "reason": reason,
        })

    # =========================================================================
    # Gateway Events
    # =========================================================================

    def gateway_call(
        self,
        gateway: str,
        duration_ms: int | None = None,
        outcome: str | None = None,
        error: str | None = None,
    ) -> None:
        """Log a registry call (summary only, never the payload)."""
        self._write({
            "event": "gateway_call",
            "gateway": gateway,
            "duration_ms": duration_ms,
            "outcome": outcome,
            "error": error,
        })

    # =========================================================================
    # Custom Events
    # =========================================================================

    def log(self, event_type: str, **kwargs) -> None:
        """Log custom event."""
        self._write({
            "event": event_type,
            **_truncate_value(kwargs),
        })

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> str | None:
        """Close the log file. Returns log path."""
        if self.log_file:
            self._write({"event": "session_end", "steps_entered": self._steps_entered})
            self.log_file.close()
            self.log_file = None
            return str(self.log_path)
        return None
