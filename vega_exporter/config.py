"""Process configuration.

Precedence: command-line flags, then environment, then a `.env` file in the
working directory, then defaults. The node endpoint has no default.

Env vars:
  VEGA_ENDPOINT                   node RPC base URL (required)
  LISTEN_ADDRESS                  [host]:port to serve on (default: :9141)
  METRICS_PATH                    metrics path (default: /metrics)
  VEGA_TIMEOUT_SECONDS            per-request timeout (default: 5.0)
  VEGA_TLS_INSECURE_SKIP_VERIFY   skip certificate checks (default: true)
  LOG_LEVEL                       DEBUG, INFO, ... (default: INFO)
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from vega_exporter.client import TransportConfig

logger = logging.getLogger(__name__)

DEFAULT_LISTEN_ADDRESS = ":9141"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_TIMEOUT_SECONDS = 5.0


def _env_str(name: str, default: str = "") -> str:
    return (os.environ.get(name, default) or "").strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_str(name).lower()
    if not raw:
        return default
    if raw in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if raw in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split `[host]:port`. An empty host means all interfaces.

    Examples:
      :9141          -> ("0.0.0.0", 9141)
      127.0.0.1:9141 -> ("127.0.0.1", 9141)
    """
    address = (address or "").strip()
    if ":" not in address:
        raise ValueError(f"Invalid listen address (missing ':port'): {address!r}")
    host, port_raw = address.rsplit(":", 1)
    host = host.strip("[]") or "0.0.0.0"
    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"Invalid listen address port: {address!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"Listen address port out of range: {address!r}")
    return host, port


@dataclass(frozen=True)
class ExporterConfig:
    endpoint: str
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    metrics_path: str = DEFAULT_METRICS_PATH
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    insecure_skip_verify: bool = True
    log_level: str = "INFO"

    @property
    def transport(self) -> TransportConfig:
        return TransportConfig(
            timeout_seconds=self.timeout_seconds,
            insecure_skip_verify=self.insecure_skip_verify,
        )

    @property
    def listen(self) -> Tuple[str, int]:
        return parse_listen_address(self.listen_address)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vega-exporter",
        description="Prometheus exporter for Vega validator nodes.",
    )
    parser.add_argument(
        "--vega.endpoint",
        dest="endpoint",
        default=None,
        help="Base URL of the node RPC endpoint (env: VEGA_ENDPOINT)",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=None,
        help=f"Address to listen on for telemetry (default: {DEFAULT_LISTEN_ADDRESS})",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="metrics_path",
        default=None,
        help=f"Path under which to expose metrics (default: {DEFAULT_METRICS_PATH})",
    )
    parser.add_argument(
        "--vega.timeout",
        dest="timeout_seconds",
        type=float,
        default=None,
        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT_SECONDS})",
    )
    parser.add_argument(
        "--vega.tls-verify",
        dest="tls_verify",
        action="store_true",
        help="Verify the node's TLS certificate (skipped by default)",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        default=None,
        help="Log level (default: INFO)",
    )
    return parser


def load_config(argv: Optional[List[str]] = None) -> ExporterConfig:
    if not load_dotenv(Path.cwd() / ".env"):
        logger.info("No .env file loaded, assuming env variables are set.")

    args = build_parser().parse_args(argv)

    endpoint = (args.endpoint or _env_str("VEGA_ENDPOINT")).strip()
    if not endpoint:
        raise SystemExit("Missing node endpoint: set VEGA_ENDPOINT or pass --vega.endpoint.")

    listen_address = args.listen_address or _env_str("LISTEN_ADDRESS", DEFAULT_LISTEN_ADDRESS)
    try:
        parse_listen_address(listen_address)
    except ValueError as exc:
        raise SystemExit(str(exc)) from None

    metrics_path = args.metrics_path or _env_str("METRICS_PATH", DEFAULT_METRICS_PATH)
    if not metrics_path.startswith("/") or metrics_path == "/":
        raise SystemExit(f"Metrics path must start with '/' and not be the root: {metrics_path!r}")

    timeout_seconds = args.timeout_seconds
    if timeout_seconds is None:
        timeout_seconds = _env_float("VEGA_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    if timeout_seconds <= 0:
        raise SystemExit(f"Request timeout must be > 0, got {timeout_seconds}")

    insecure_skip_verify = False if args.tls_verify else _env_bool("VEGA_TLS_INSECURE_SKIP_VERIFY", True)

    log_level = (args.log_level or _env_str("LOG_LEVEL", "INFO")).upper()

    return ExporterConfig(
        endpoint=endpoint,
        listen_address=listen_address,
        metrics_path=metrics_path,
        timeout_seconds=timeout_seconds,
        insecure_skip_verify=insecure_skip_verify,
        log_level=log_level,
    )
