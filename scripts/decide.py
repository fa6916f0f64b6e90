#!/usr/bin/env python3.11
"""Evaluate one transaction request JSON file and print the outcome."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from agents.bootstrap import build_engine
from core.config import CosignerConfig
from core.errors import InvalidRequestError
from core.logger import StructuredLogger
from core.models import TransactionRequest

LOGGER = StructuredLogger("decide_cli")


def _read_request(source: str) -> TransactionRequest:
    text = sys.stdin.read() if source == "-" else Path(source).read_text()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidRequestError(f"request is not valid JSON: {exc}") from exc
    return TransactionRequest.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Co-sign decision for one request")
    parser.add_argument("request", help="request JSON file, or - for stdin")
    parser.add_argument("--config", help="YAML config file")
    args = parser.parse_args(argv)

    try:
        tx_request = _read_request(args.request)
    except (OSError, InvalidRequestError) as exc:
        LOGGER.log("invalid_request", error=str(exc))
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 2

    engine = build_engine(CosignerConfig.load(args.config))
    outcome = asyncio.run(engine.decide(tx_request))
    print(json.dumps(outcome.to_dict(), indent=2))
    return 0 if outcome.signed else 1


if __name__ == "__main__":
    sys.exit(main())
