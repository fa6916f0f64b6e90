"""Runtime configuration and credential lookup.

Settings resolve in three layers: built-in defaults, an optional YAML file
(``COSIGNER_CONFIG`` or ``config/cosigner.yaml``) and environment variables.
Secrets never live in the YAML file; they come from :func:`get_secret`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, cast

import yaml

DEFAULT_CONFIG_PATH = "config/cosigner.yaml"

# environment variable -> config field
_ENV_OVERRIDES = {
    "RPC_URL": "rpc_url",
    "SAFE_SERVICE_URL": "safe_service_url",
    "ORACLE_MODEL": "oracle_model",
    "ORACLE_TIMEOUT_SEC": "oracle_timeout_sec",
    "HTTP_TIMEOUT_SEC": "http_timeout_sec",
    "RECEIPT_TIMEOUT_SEC": "receipt_timeout_sec",
    "REQUIRE_PENDING_TX": "require_pending_transaction",
    "COSIGNER_PORT": "port",
}


def get_secret(name: str) -> str:
    """Return secret ``name`` from a file path or the environment.

    ``${name}_FILE`` wins when it points at an existing file; otherwise the
    environment variable ``name`` is used. Raises ``RuntimeError`` if the
    secret is not found. The value is never logged.
    """
    path = os.getenv(f"{name}_FILE")
    if path:
        p = Path(path)
        if p.exists():
            return p.read_text().strip()
    val = os.getenv(name)
    if val:
        return val.strip()
    raise RuntimeError(f"secret {name} not found")


def load_config(path: str) -> Dict[str, Any]:
    """Load a YAML mapping from ``path``; an empty file yields ``{}``."""

    data = yaml.safe_load(Path(path).read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config {path} must contain a mapping")
    return cast(Dict[str, Any], data)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class CosignerConfig:
    rpc_url: str = "http://localhost:8545"
    safe_service_url: str = "https://safe-transaction-mainnet.safe.global"
    oracle_model: str = "gpt-3.5-turbo"
    oracle_timeout_sec: float = 30.0
    http_timeout_sec: float = 10.0
    receipt_timeout_sec: float = 120.0
    require_pending_transaction: bool = False
    port: int = 3000

    @classmethod
    def load(cls, path: str | None = None) -> "CosignerConfig":
        """Build config from defaults, YAML file and environment overrides."""

        raw: Dict[str, Any] = {}
        path = path or os.getenv("COSIGNER_CONFIG")
        if path:
            raw.update(load_config(path))
        elif Path(DEFAULT_CONFIG_PATH).exists():
            raw.update(load_config(DEFAULT_CONFIG_PATH))
        for env_var, name in _ENV_OVERRIDES.items():
            val = os.getenv(env_var)
            if val is not None and val != "":
                raw[name] = val
        return cls.from_mapping(raw)

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any]) -> "CosignerConfig":
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(raw) - set(known))
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        values: Dict[str, Any] = {}
        for name, val in raw.items():
            kind = known[name].type
            if kind == "bool":
                values[name] = _as_bool(val)
            elif kind == "int":
                values[name] = int(val)
            elif kind == "float":
                values[name] = float(val)
            else:
                values[name] = str(val)
        return cls(**values)
