"""
qf_calculator/models.py — Data model shared by the matching core.

Every amount is a decimal.Decimal. External values (JSON numbers, strings from
identity providers) are converted exactly once, at the ingestion boundary, via
to_decimal(). The core never re-parses.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Convert an external numeric value to Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion. Booleans, unparseable strings, NaN and infinities
    return `default`.

    Args:
        value:   int, float, str or Decimal (anything else yields default).
        default: Value returned when conversion is not possible.

    Returns:
        A finite Decimal, or default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            return default
    else:
        return default
    if not result.is_finite():
        return default
    return result


@dataclass(frozen=True)
class Contribution:
    """A single donation from a contributor to a recipient (application)."""

    contributor: str
    recipient: str
    amount: Decimal


@dataclass(frozen=True)
class PassportEvidence:
    """
    Sybil-resistance evidence attached to an address.

    Fields:
        success:   True if the passport provider considers the address verified.
        raw_score: Provider score, already parsed. Unparseable source values
                   are stored as Decimal(0).
    """

    success: bool
    raw_score: Decimal


@dataclass(frozen=True)
class IdentityScore:
    """Identity-score record for one contributor address."""

    address: str
    evidence: Optional[PassportEvidence] = None


@dataclass(frozen=True)
class RoundConfig:
    """
    Matching parameters of a round, immutable for one calculation.

    Fields:
        round_id:        Round identifier as used by the data source.
        match_pool_usd:  Size of the matching pool in USD.
        minimum_amount:  Minimum contribution (USD) the round accepts, or None
                         when the round does not define one.
    """

    round_id: str
    match_pool_usd: Decimal
    minimum_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class Calculation:
    """
    Matching engine output for one recipient.

    Fields:
        recipient:      Recipient (application) id.
        total_received: Sum of eligible contributions.
        sum_of_sqrt:    Sum of square roots of per-contributor totals.
        matched:        Share of the matching pool allocated to the recipient.
    """

    recipient: str
    total_received: Decimal
    sum_of_sqrt: Decimal
    matched: Decimal


@dataclass(frozen=True)
class RecipientMetadata:
    """
    Application metadata joined onto a Calculation.

    project_id, project_name and payout_address are None when the application
    record does not carry them.
    """

    application_id: str
    project_id: Optional[str]
    contributions_count: int
    project_name: Optional[str] = None
    payout_address: Optional[str] = None


@dataclass(frozen=True)
class AugmentedResult:
    """Final per-recipient record handed to the transport layer."""

    total_received: Decimal
    sum_of_sqrt: Decimal
    matched: Decimal
    project_id: Optional[str]
    application_id: str
    project_name: Optional[str]
    payout_address: Optional[str]
    contributions_count: int

    def to_dict(self) -> dict:
        """Return the external JSON shape (camelCase keys, numeric amounts)."""
        return {
            "totalReceived": float(self.total_received),
            "sumOfSqrt": float(self.sum_of_sqrt),
            "matched": float(self.matched),
            "projectId": self.project_id,
            "applicationId": self.application_id,
            "projectName": self.project_name,
            "payoutAddress": self.payout_address,
            "contributionsCount": self.contributions_count,
        }
