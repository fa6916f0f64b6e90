"""Structured JSON logger for the co-signer modules.

Module purpose and system role:
    - Provide production-grade logging with a consistent schema.
    - Emits JSON lines for audit ingestion of every signing decision.

Integration points and dependencies:
    - Other modules instantiate ``StructuredLogger`` to record events.
    - ``requests`` posts alerts to ``OPS_ALERT_WEBHOOK`` endpoints.

Simulation/test hooks:
    - Hooks allow test suites to trace log output without reading files.
    - Raw credentials must never be passed in; log addresses instead.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List

import requests


def make_json_safe(value: Any) -> Any:
    """Return ``value`` converted into something ``json.dumps`` accepts."""

    if isinstance(value, dict):
        return {str(k): make_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [make_json_safe(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return f"<{type(value).__name__}>"


def _error_log_file() -> Path:
    """Return the configured error log file path."""

    return Path(os.getenv("ERROR_LOG_FILE", "logs/errors.log"))


def log_error(
    module: str,
    error: str,
    *,
    tx_id: str = "",
    wallet: str = "",
    risk_level: str = "",
    trace_id: str | None = None,
    **extra: Any,
) -> None:
    """Write structured error entry to ``logs/errors.log``."""

    if trace_id is None:
        trace_id = os.getenv("TRACE_ID", "")
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "module": module,
        "error": error,
        "tx_id": tx_id,
        "wallet": wallet,
        "risk_level": risk_level,
        "trace_id": trace_id,
        **extra,
    }
    path = _error_log_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a") as fh:
        fh.write(json.dumps(make_json_safe(entry)) + "\n")


_HOOKS: List[Callable[[Dict[str, Any]], None]] = []


def _alert_webhooks() -> List[str]:
    return [w for w in os.getenv("OPS_ALERT_WEBHOOK", "").split(",") if w]


def _send_alert(message: str) -> None:
    for url in _alert_webhooks():
        try:  # pragma: no cover - network
            requests.post(url, json={"text": message}, timeout=5)
        except requests.RequestException as exc:
            log_error("logger", f"alert delivery failed: {exc}", event="alert_fail")


def register_hook(func: Callable[[Dict[str, Any]], None]) -> None:
    """Register ``func`` to receive every log entry."""
    _HOOKS.append(func)


def unregister_hook(func: Callable[[Dict[str, Any]], None]) -> None:
    if func in _HOOKS:
        _HOOKS.remove(func)


class StructuredLogger:
    """Write structured JSON logs to file and broadcast to hooks."""

    def __init__(self, module: str, log_file: str | None = None) -> None:
        self.module = module
        if log_file is None:
            env_var = f"{module.upper()}_LOG"
            log_file = os.getenv(env_var, f"logs/{module}.json")
        self.path = Path(log_file)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    def log(
        self,
        event: str,
        *,
        tx_id: str = "",
        wallet: str = "",
        risk_level: str = "",
        error: str | None = None,
        trace_id: str | None = None,
        **extra: Any,
    ) -> None:
        """Append log entry to file and send to hooks."""

        if trace_id is None:
            trace_id = os.getenv("TRACE_ID", "")
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "module": self.module,
            "tx_id": tx_id,
            "wallet": wallet,
            "risk_level": risk_level,
            "error": error,
            "trace_id": trace_id,
        }
        entry.update(make_json_safe(extra))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a") as fh:
            fh.write(json.dumps(entry) + "\n")
        for hook in list(_HOOKS):
            try:
                hook(entry)
            except Exception as exc:
                # log hook errors but do not interrupt logging
                log_error(
                    self.module,
                    f"hook error: {exc}",
                    event="hook_fail",
                    trace_id=trace_id,
                )
        if error:
            log_error(
                self.module,
                error,
                event=event,
                tx_id=tx_id,
                wallet=wallet,
                risk_level=risk_level,
                trace_id=trace_id,
            )
        if error or risk_level == "high":
            _send_alert(f"{self.module}:{event}:{error or ''}")
