from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterator, List, Optional

from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from vega_exporter.client import VegaClient
from vega_exporter.errors import DecodeError, TransportError
from vega_exporter.signing import SigningFact, build_roster, correlate, extract_vote_tokens

logger = logging.getLogger(__name__)

NAMESPACE = "vega"


@dataclass
class ScrapeOutcome:
    up: bool
    catching_up: bool = False
    # None when the roster/consensus stage failed and signing was not evaluated.
    facts: Optional[List[SigningFact]] = None


def run_scrape_cycle(client: VegaClient) -> ScrapeOutcome:
    """Run one fetch-decode-correlate pass against the node.

    A failed status query marks the node down and ends the cycle. A failed
    peer or consensus query only drops the signing series for this cycle.
    Nothing here raises for upstream problems.
    """
    try:
        status = client.status()
    except (TransportError, DecodeError) as exc:
        logger.warning("Status query failed: %s", exc)
        return ScrapeOutcome(up=False)

    outcome = ScrapeOutcome(up=True, catching_up=status.catching_up)

    try:
        net_info = client.net_info()
        consensus = client.dump_consensus_state()
    except (TransportError, DecodeError) as exc:
        logger.warning("Skipping validator signing this cycle: %s", exc)
        return outcome

    roster = build_roster(net_info.peers)
    tokens = extract_vote_tokens(consensus.last_commit.votes)
    logger.debug("Vote tokens at height %d: %s", consensus.height, tokens)
    logger.debug("Validator roster: %s", roster)

    outcome.facts = correlate(roster, tokens)
    return outcome


def _families(outcome: Optional[ScrapeOutcome]) -> Iterator[Metric]:
    up = GaugeMetricFamily(f"{NAMESPACE}_up", "Was the last vega query successful.")
    catching_up = GaugeMetricFamily(f"{NAMESPACE}_sync_catching_up", "Is the node catching up?")
    signing = GaugeMetricFamily(
        f"{NAMESPACE}_validator_signing",
        "Flag indicating if a validator is signing or not (per validator).",
        labels=["validator"],
    )
    if outcome is None:
        yield up
        yield catching_up
        yield signing
        return

    up.add_metric([], 1 if outcome.up else 0)
    yield up
    if not outcome.up:
        return

    catching_up.add_metric([], 1 if outcome.catching_up else 0)
    yield catching_up

    if outcome.facts is not None:
        for fact in outcome.facts:
            signing.add_metric([fact.validator], 1 if fact.signed else 0)
        yield signing


class VegaCollector(Collector):
    """Runs a fresh scrape cycle every time the registry is collected."""

    def __init__(self, client: VegaClient) -> None:
        self.client = client

    def describe(self) -> Iterator[Metric]:
        return _families(None)

    def collect(self) -> Iterator[Metric]:
        started = time.monotonic()
        outcome = run_scrape_cycle(self.client)
        logger.info(
            "Endpoint scraped (up=%d, validators=%s) in %.3fs",
            outcome.up,
            "-" if outcome.facts is None else len(outcome.facts),
            time.monotonic() - started,
        )
        return _families(outcome)
