import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict

import pytest
import requests

# Ensure repo root is on sys.path so `import vega_exporter` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import vega_exporter.client as client_mod  # noqa: E402
from vega_exporter.client import VegaClient  # noqa: E402

ENDPOINT = "https://vega-node:26657"


class _Resp:
    def __init__(self, payload: Any, status_code: int = 200):
        self.content = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


def status_payload(catching_up: bool = False) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "node_info": {
                "id": "ab12cd34ef56ab12cd34ef56ab12cd34ef56ab12",
                "moniker": "validator-0",
                "network": "vega-mainnet-0011",
                "version": "0.34.20",
            },
            "sync_info": {
                "latest_block_height": "1234567",
                "latest_block_time": "2023-03-01T10:00:00.123456Z",
                "catching_up": catching_up,
            },
            "validator_info": {
                "address": "ABCDEF0123456789ABCDEF0123456789ABCDEF01",
                "voting_power": "10",
            },
        },
    }


def net_info_payload(*peers: Dict[str, str]) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "listening": True,
            "listeners": ["Listener(@)"],
            "n_peers": str(len(peers)),
            "peers": [
                {
                    "node_info": {"id": p["id"], "moniker": p["moniker"], "channels": "40202122233038"},
                    "is_outbound": True,
                    "remote_ip": "10.0.0.1",
                    "connection_status": {"Duration": "1000"},
                }
                for p in peers
            ],
        },
    }


def consensus_payload(*votes: Any) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "round_state": {
                "height": "1234568",
                "round": 0,
                "step": 3,
                "last_commit": {
                    "votes": list(votes),
                    "votes_bit_array": "BA{2:xx} 20/20 = 1.00",
                    "peer_maj_23s": {},
                },
            },
            "peers": [],
        },
    }


def vote(address: str) -> str:
    return (
        f"Vote{{0:{address} 1234567/00/SIGNED_MSG_TYPE_PRECOMMIT(Precommit) "
        "8B01023386C3 000000000000 @ 2023-03-01T10:00:00.123456Z}"
    )


@pytest.fixture
def make_client(monkeypatch) -> Callable[[Dict[str, Any]], VegaClient]:
    """Build a client whose GETs are answered from a {path: payload-or-exception} map."""

    def _make(routes: Dict[str, Any]) -> VegaClient:
        client = VegaClient(ENDPOINT)

        def fake_get(url: str, *, timeout: float, verify: bool):
            assert url.startswith(ENDPOINT)
            answer = routes.get(url[len(ENDPOINT):])
            if answer is None:
                raise requests.ConnectionError(f"no route for {url}")
            if isinstance(answer, Exception):
                raise answer
            if isinstance(answer, _Resp):
                return answer
            return _Resp(answer)

        monkeypatch.setattr(client_mod.requests, "get", fake_get)
        return client

    return _make
