"""Decoders for the three Tendermint RPC payloads the exporter consumes.

Only the fields the exporter reads are modelled. Anything else in the
upstream payload is ignored, and a nested field that is missing or has an
unexpected type decodes to its zero value rather than failing the whole
payload. A body that is not JSON, or not a JSON object, is a `DecodeError`.

Payloads may be wrapped in the JSON-RPC envelope:

    {"jsonrpc": "2.0", "id": -1, "result": {...}}

or arrive bare (the object that would sit under "result").
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from vega_exporter.errors import DecodeError


def _obj(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _bool(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _int(value: Any) -> int:
    # Tendermint encodes int64 values as JSON strings.
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _load_result(raw: Union[bytes, str], what: str) -> Dict[str, Any]:
    try:
        body = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"{what}: invalid JSON: {exc}") from exc
    if not isinstance(body, dict):
        raise DecodeError(f"{what}: expected a JSON object, got {type(body).__name__}")
    if body.get("error"):
        raise DecodeError(f"{what}: RPC error: {body['error']}")
    if "result" in body:
        return _obj(body["result"])
    return body


@dataclass
class NodeStatus:
    catching_up: bool = False


@dataclass
class Peer:
    node_id: str = ""
    moniker: str = ""


@dataclass
class NetInfo:
    peers: List[Peer] = field(default_factory=list)


@dataclass
class LastCommit:
    # Each element is a free-form vote description, usually a string like
    # "Vote{0:2E8B1B6AC1A2 1234/00/SIGNED_MSG_TYPE_PRECOMMIT(Precommit) ...}".
    votes: List[Any] = field(default_factory=list)


@dataclass
class ConsensusState:
    height: int = 0
    last_commit: LastCommit = field(default_factory=LastCommit)


def decode_status(raw: Union[bytes, str]) -> NodeStatus:
    result = _load_result(raw, "status")
    sync_info = _obj(result.get("sync_info"))
    return NodeStatus(catching_up=_bool(sync_info.get("catching_up")))


def decode_net_info(raw: Union[bytes, str]) -> NetInfo:
    result = _load_result(raw, "net_info")
    peers: List[Peer] = []
    raw_peers = result.get("peers")
    for item in raw_peers if isinstance(raw_peers, list) else []:
        node_info = _obj(_obj(item).get("node_info"))
        peers.append(
            Peer(
                node_id=_str(node_info.get("id")),
                moniker=_str(node_info.get("moniker")),
            )
        )
    return NetInfo(peers=peers)


def decode_consensus_state(raw: Union[bytes, str]) -> ConsensusState:
    result = _load_result(raw, "dump_consensus_state")
    round_state = _obj(result.get("round_state"))
    last_commit = _obj(round_state.get("last_commit"))
    votes = last_commit.get("votes")
    return ConsensusState(
        height=_int(round_state.get("height")),
        last_commit=LastCommit(votes=list(votes) if isinstance(votes, list) else []),
    )
