"""Which validators signed the last commit.

The consensus dump only lists votes as free-form strings, and the peer list
only carries node IDs, so the two are joined on a truncated identifier:
the first SHORT_ID_LENGTH characters of a peer's node ID are compared with
the address-like token pulled out of each vote string. The match is
deliberately loose. Two peers whose IDs share a 12-character prefix get the
same signing result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence

from vega_exporter.errors import CorrelationPreconditionError
from vega_exporter.schemas import Peer

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 12

# A run of uppercase letters/digits followed by a single space. In a vote like
#   Vote{0:2E8B1B6AC1A2 1234/00/SIGNED_MSG_TYPE_PRECOMMIT(Precommit) ...}
# the first such run is the truncated validator address "2E8B1B6AC1A2".
VOTE_TOKEN_PATTERN = re.compile(r"([0-9A-Z]+) ")


@dataclass(frozen=True)
class ValidatorIdentity:
    moniker: str
    full_id: str
    short_id: str


@dataclass(frozen=True)
class SigningFact:
    validator: str
    signed: bool


def extract_vote_tokens(votes: Iterable[Any]) -> List[str]:
    """Pull the voter token out of each last-commit vote entry.

    Entries that don't match (e.g. "nil-Vote") or are null are skipped.
    Order and duplicates are kept.

        >>> extract_vote_tokens(["Vote{0:ABCDEF012345 10/00/2 ...}", "nil-Vote"])
        ['ABCDEF012345']
    """
    tokens: List[str] = []
    for vote in votes or []:
        if vote is None:
            continue
        text = vote if isinstance(vote, str) else str(vote)
        m = VOTE_TOKEN_PATTERN.search(text)
        if m:
            tokens.append(m.group(1))
    return tokens


def derive_short_id(full_id: str) -> str:
    if len(full_id) < SHORT_ID_LENGTH:
        raise CorrelationPreconditionError(
            f"node id {full_id!r} is shorter than {SHORT_ID_LENGTH} characters"
        )
    return full_id[:SHORT_ID_LENGTH]


def build_roster(peers: Iterable[Peer]) -> List[ValidatorIdentity]:
    """One identity per peer, in peer order. Peers with short IDs are skipped."""
    roster: List[ValidatorIdentity] = []
    for peer in peers:
        try:
            short_id = derive_short_id(peer.node_id)
        except CorrelationPreconditionError as exc:
            logger.warning("Skipping peer %r: %s", peer.moniker, exc)
            continue
        roster.append(ValidatorIdentity(moniker=peer.moniker, full_id=peer.node_id, short_id=short_id))
    return roster


def correlate(roster: Iterable[ValidatorIdentity], tokens: Sequence[str]) -> List[SigningFact]:
    facts: List[SigningFact] = []
    for validator in roster:
        wanted = validator.short_id.strip()
        signed = any(token.strip() == wanted for token in tokens)
        facts.append(SigningFact(validator=validator.moniker, signed=signed))
    return facts
