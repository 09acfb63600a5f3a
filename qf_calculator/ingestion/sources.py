"""
qf_calculator/ingestion/sources.py — The four round data sources.

RoundDataSource maps the raw JSON layout of a data tree onto the core's
data model:

    {chain}/rounds/{round}/votes.json         → Contribution
    {chain}/rounds/{round}/applications.json  → RecipientMetadata
    {chain}/rounds.json                       → RoundConfig
    passport_scores.json                      → IdentityScore

Parsing happens exactly once, here. Records that cannot be turned into a
valid model object (missing ids, unparseable amounts) are skipped with a
warning. A passport rawScore that is not a finite number becomes 0.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from qf_calculator.ingestion.data_provider import DataProvider
from qf_calculator.models import (
    Contribution,
    IdentityScore,
    PassportEvidence,
    RecipientMetadata,
    RoundConfig,
    to_decimal,
)

logger = logging.getLogger(__name__)

_ZERO = Decimal(0)


# ── Raw record parsers ────────────────────────────────────────────────────────

def parse_contribution(raw: dict) -> Optional[Contribution]:
    """Map a raw vote {voter, applicationId, amountUSD} to a Contribution."""
    voter = raw.get("voter")
    application_id = raw.get("applicationId")
    amount = to_decimal(raw.get("amountUSD"))
    if not voter or application_id is None or amount is None:
        return None
    return Contribution(contributor=str(voter), recipient=str(application_id), amount=amount)


def parse_identity_score(raw: dict) -> Optional[IdentityScore]:
    """Map a raw passport record {address, evidence: {success, rawScore}}."""
    address = raw.get("address")
    if not address:
        return None

    evidence_raw = raw.get("evidence")
    if not isinstance(evidence_raw, dict):
        return IdentityScore(address=address, evidence=None)

    raw_score = to_decimal(evidence_raw.get("rawScore"))
    if raw_score is None:
        if evidence_raw.get("rawScore") is not None:
            logger.debug(
                "Unparseable rawScore %r for %s; using 0.",
                evidence_raw.get("rawScore"),
                address,
            )
        raw_score = _ZERO

    return IdentityScore(
        address=address,
        evidence=PassportEvidence(
            success=evidence_raw.get("success") is True,
            raw_score=raw_score,
        ),
    )


def parse_round_config(raw: dict) -> Optional[RoundConfig]:
    """Map a raw round {id, matchAmountUSD, minimumAmount?} to a RoundConfig."""
    round_id = raw.get("id")
    if not round_id:
        return None

    match_pool = to_decimal(raw.get("matchAmountUSD"))
    if match_pool is None:
        logger.warning("Round %s has no usable matchAmountUSD; using 0.", round_id)
        match_pool = _ZERO

    return RoundConfig(
        round_id=str(round_id),
        match_pool_usd=match_pool,
        minimum_amount=to_decimal(raw.get("minimumAmount")),
    )


def _nested(raw: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(raw, dict):
            return None
        raw = raw.get(key)
    return raw


def parse_recipient_metadata(raw: dict) -> Optional[RecipientMetadata]:
    """
    Map a raw application record to RecipientMetadata.

    Name and payout address live under metadata.application.project.title and
    metadata.application.recipient; either may be absent. A null projectId
    stays None.
    """
    application_id = raw.get("id")
    if application_id is None:
        return None

    project_id = raw.get("projectId")
    votes = raw.get("votes")
    title = _nested(raw, "metadata", "application", "project", "title")
    payout = _nested(raw, "metadata", "application", "recipient")

    return RecipientMetadata(
        application_id=str(application_id),
        project_id=str(project_id) if project_id is not None else None,
        contributions_count=int(votes) if isinstance(votes, (int, Decimal)) else 0,
        project_name=title if isinstance(title, str) else None,
        payout_address=payout if isinstance(payout, str) else None,
    )


def _parse_all(description: str, records: Any, parser) -> list:
    if not isinstance(records, list):
        logger.warning("%s file is not a JSON array; treating as empty.", description)
        return []

    parsed = []
    skipped = 0
    for raw in records:
        item = parser(raw) if isinstance(raw, dict) else None
        if item is None:
            skipped += 1
            continue
        parsed.append(item)

    if skipped:
        logger.warning("Skipped %d malformed %s records.", skipped, description)
    return parsed


# ── Data source ───────────────────────────────────────────────────────────────

class RoundDataSource:
    """
    Typed access to a round's data through a DataProvider.

    Every load_* method raises DataSourceUnavailableError (via the provider)
    when the underlying document is missing.

    Args:
        provider:             DataProvider serving the raw JSON documents.
        passport_scores_path: Path of the shared passport scores document.
    """

    def __init__(self, provider: DataProvider, passport_scores_path: str = "passport_scores.json") -> None:
        self.provider = provider
        self.passport_scores_path = passport_scores_path

    def load_contributions(self, chain_id: str, round_id: str) -> list[Contribution]:
        raw = self.provider.load_file("votes", f"{chain_id}/rounds/{round_id}/votes.json")
        return _parse_all("votes", raw, parse_contribution)

    def load_recipient_metadata(self, chain_id: str, round_id: str) -> list[RecipientMetadata]:
        raw = self.provider.load_file(
            "applications", f"{chain_id}/rounds/{round_id}/applications.json"
        )
        return _parse_all("applications", raw, parse_recipient_metadata)

    def load_round_configs(self, chain_id: str) -> list[RoundConfig]:
        raw = self.provider.load_file("rounds", f"{chain_id}/rounds.json")
        return _parse_all("rounds", raw, parse_round_config)

    def load_identity_scores(self) -> list[IdentityScore]:
        raw = self.provider.load_file("passport scores", self.passport_scores_path)
        return _parse_all("passport scores", raw, parse_identity_score)
