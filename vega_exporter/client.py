from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
import urllib3

from vega_exporter.errors import TransportError
from vega_exporter.schemas import (
    ConsensusState,
    NetInfo,
    NodeStatus,
    decode_consensus_state,
    decode_net_info,
    decode_status,
)

logger = logging.getLogger(__name__)

STATUS_PATH = "/status"
NET_INFO_PATH = "/net_info"
CONSENSUS_STATE_PATH = "/dump_consensus_state"


@dataclass(frozen=True)
class TransportConfig:
    """How requests to the node are made.

    Validator RPC endpoints are usually internal and served with self-signed
    certificates, so certificate verification is off unless asked for.
    """

    timeout_seconds: float = 5.0
    insecure_skip_verify: bool = True


class VegaClient:
    """Unauthenticated GET client for a single node's RPC endpoint."""

    def __init__(self, endpoint: str, transport: TransportConfig | None = None) -> None:
        endpoint = (endpoint or "").strip().rstrip("/")
        if not endpoint:
            raise ValueError("No endpoint configured. Set VEGA_ENDPOINT.")
        self.endpoint = endpoint
        self.transport = transport or TransportConfig()
        if self.transport.insecure_skip_verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def get(self, path: str) -> bytes:
        # One standalone request per call: no cookies or pooled connections
        # carry over between scrapes.
        url = f"{self.endpoint}{path}"
        logger.debug("GET %s", url)
        try:
            r = requests.get(
                url,
                timeout=self.transport.timeout_seconds,
                verify=not self.transport.insecure_skip_verify,
            )
            r.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc
        return r.content

    def status(self) -> NodeStatus:
        return decode_status(self.get(STATUS_PATH))

    def net_info(self) -> NetInfo:
        return decode_net_info(self.get(NET_INFO_PATH))

    def dump_consensus_state(self) -> ConsensusState:
        return decode_consensus_state(self.get(CONSENSUS_STATE_PATH))
