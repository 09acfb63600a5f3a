"""
qf_calculator/matching/eligibility.py — Contribution eligibility filter.

A contribution counts towards matching when it meets the minimum amount and,
if passport gating is enabled, its contributor's identity evidence passes:

    passport disabled            → accept
    passport + threshold         → accept iff raw_score > threshold (strict)
    passport, no threshold       → accept iff evidence.success

Missing or malformed identity data never raises; it simply makes the
contribution ineligible (or scores it as 0 under a threshold).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from qf_calculator.models import Contribution, IdentityScore

logger = logging.getLogger(__name__)

_ZERO = Decimal(0)


@dataclass(frozen=True)
class EligibilityPolicy:
    """
    Eligibility knobs for one calculation.

    Fields:
        minimum_amount:     Contributions strictly below this are rejected.
        enable_passport:    Gate contributions on passport evidence.
        passport_threshold: Score a contributor must strictly exceed. None
                            means the boolean evidence.success is used instead.
    """

    minimum_amount: Decimal = _ZERO
    enable_passport: bool = False
    passport_threshold: Optional[Decimal] = None


def is_eligible(
    contribution: Contribution,
    identity_score: Optional[IdentityScore],
    policy: EligibilityPolicy,
) -> bool:
    """Decide whether a single contribution counts. Pure and total."""
    if contribution.amount < policy.minimum_amount:
        return False

    if not policy.enable_passport:
        return True

    evidence = identity_score.evidence if identity_score is not None else None

    if policy.passport_threshold is not None:
        raw_score = evidence.raw_score if evidence is not None else _ZERO
        return raw_score > policy.passport_threshold

    return evidence is not None and evidence.success


def build_passport_index(scores: Iterable[IdentityScore]) -> dict[str, IdentityScore]:
    """Index identity scores by address. Later records replace earlier ones."""
    index: dict[str, IdentityScore] = {}
    for score in scores:
        index[score.address] = score
    return index


def filter_contributions(
    contributions: Iterable[Contribution],
    passport_index: dict[str, IdentityScore],
    policy: EligibilityPolicy,
) -> list[Contribution]:
    """
    Return the eligible contributions, in input order.

    Args:
        contributions:  All contributions of the round.
        passport_index: Output of build_passport_index().
        policy:         EligibilityPolicy for this calculation.

    Returns:
        List of contributions for which is_eligible() is True.
    """
    eligible: list[Contribution] = []
    rejected = 0
    for contribution in contributions:
        if is_eligible(contribution, passport_index.get(contribution.contributor), policy):
            eligible.append(contribution)
        else:
            rejected += 1

    logger.info(
        "Eligibility: %d contributions accepted, %d rejected "
        "(minimum=%s, passport=%s, threshold=%s).",
        len(eligible),
        rejected,
        policy.minimum_amount,
        policy.enable_passport,
        policy.passport_threshold,
    )
    return eligible
