"""Observability: structured logs (trace_id, tool, latency_ms) and in-process counters."""

from __future__ import annotations

import logging
import threading
from typing import Any

_LOGGER = logging.getLogger("audiencescout.mcp")

# tool_calls[name] = count, errors[name] = count
METRICS: dict[str, dict[str, int]] = {"tool_calls": {}, "errors": {}}
_METRICS_LOCK = threading.Lock()


def log_tool_invocation(
    tool: str,
    trace_id: str | None,
    latency_ms: float,
    error: str | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """Emit a structured log line and update the counters."""
    payload: dict[str, Any] = {
        "tool": tool,
        "trace_id": trace_id,
        "latency_ms": round(latency_ms, 2),
    }
    if error:
        payload["error"] = error
    if extra:
        payload.update(extra)
    _LOGGER.info("tool_invocation", extra=payload)
    with _METRICS_LOCK:
        METRICS["tool_calls"][tool] = METRICS["tool_calls"].get(tool, 0) + 1
        if error:
            METRICS["errors"][tool] = METRICS["errors"].get(tool, 0) + 1


def metrics_snapshot() -> dict[str, dict[str, int]]:
    with _METRICS_LOCK:
        return {k: dict(v) for k, v in METRICS.items()}


def reset_metrics() -> None:
    with _METRICS_LOCK:
        for counters in METRICS.values():
            counters.clear()
