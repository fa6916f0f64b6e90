"""Co-signer HTTP Service
-----------------------

Flask boundary in front of :class:`agents.decision_engine.DecisionEngine`.

Environment variables
=====================
COSIGNER_PORT   -- TCP port to bind (default ``3000``)
COSIGNER_CONFIG -- YAML config file (see :mod:`core.config`)
AGENT_PRIVATE_KEY / OPENAI_API_KEY -- secrets, or their ``*_FILE`` variants

Endpoints
=========
POST /api/v1/analyze-transaction -- Decide on a firewall-classified request.
GET  /api/v1/health              -- ``{"status": "healthy", "version": ...}``
GET  /metrics                    -- Prometheus exposition.

Usage
=====
Run directly via ``python -m adapters.cosigner_service``.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from core import metrics
from core.config import CosignerConfig
from core.errors import InvalidRequestError
from core.logger import StructuredLogger
from core.models import TransactionRequest

VERSION = "0.1.0"

LOGGER = StructuredLogger("cosigner_service")


def create_app(engine: Any) -> Flask:
    """Build the Flask app around an already constructed ``engine``."""

    app = Flask(__name__)

    @app.before_request
    def _log_request() -> None:
        LOGGER.log("request", path=request.path, method=request.method)

    @app.after_request
    def _after(resp):  # type: ignore[no-untyped-def]
        LOGGER.log("response", path=request.path, status=resp.status_code, risk_level="low")
        return resp

    @app.errorhandler(Exception)
    def _handle_error(exc: Exception):  # type: ignore[no-untyped-def]
        if isinstance(exc, HTTPException):
            return exc
        metrics.record_error("http")
        LOGGER.log("error", risk_level="high", error=str(exc), path=request.path)
        return jsonify({"error": str(exc)}), 500

    @app.route("/api/v1/analyze-transaction", methods=["POST"])
    async def _analyze() -> Any:
        body = request.get_json(silent=True)
        try:
            tx_request = TransactionRequest.from_dict(body if body is not None else {})
        except InvalidRequestError as exc:
            LOGGER.log("invalid_request", error=str(exc), risk_level="low")
            return jsonify({"error": str(exc)}), 400

        start = time.time()
        outcome = await engine.decide(tx_request)
        data = outcome.to_dict()
        data["timestamp"] = datetime.now(timezone.utc).isoformat()
        LOGGER.log(
            "analyzed",
            wallet=tx_request.wallet_address,
            state=data["state"],
            latency=time.time() - start,
        )
        return jsonify(data)

    @app.route("/api/v1/health")
    def _health() -> Any:
        return jsonify({"status": "healthy", "version": VERSION})

    @app.route("/metrics")
    def _metrics() -> Any:
        body, content_type = metrics.render()
        return body, 200, {"Content-Type": content_type}

    return app


def run(config: CosignerConfig | None = None) -> None:
    from agents.bootstrap import build_engine

    config = config or CosignerConfig.load()
    app = create_app(build_engine(config))
    LOGGER.log("start", port=config.port)
    app.run(host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    run()
