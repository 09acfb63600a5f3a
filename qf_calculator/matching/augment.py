"""
qf_calculator/matching/augment.py — Join engine output with application metadata.

Each Calculation is matched to its application record by recipient id. The
amounts are copied verbatim; project id, name, payout address and the
contribution count come from the metadata source. A recipient without
metadata aborts the whole request: a result record cannot be emitted without
its application.
"""

import logging
from typing import Iterable

from qf_calculator.errors import MissingMetadataError
from qf_calculator.models import AugmentedResult, Calculation, RecipientMetadata

logger = logging.getLogger(__name__)


def build_metadata_index(records: Iterable[RecipientMetadata]) -> dict[str, RecipientMetadata]:
    """Index application metadata by application id. Later records win."""
    return {record.application_id: record for record in records}


def augment_results(
    calculations: dict[str, Calculation],
    metadata_index: dict[str, RecipientMetadata],
) -> list[AugmentedResult]:
    """
    Produce one AugmentedResult per Calculation, in engine order.

    Args:
        calculations:   Output of linear_qf(), keyed by recipient id.
        metadata_index: Output of build_metadata_index().

    Returns:
        List of AugmentedResult, same length and order as calculations.

    Raises:
        MissingMetadataError: If a recipient has no metadata record.
    """
    augmented: list[AugmentedResult] = []
    for recipient, calc in calculations.items():
        metadata = metadata_index.get(recipient)
        if metadata is None:
            logger.error("augment_results: no application metadata for %s.", recipient)
            raise MissingMetadataError(recipient)

        augmented.append(
            AugmentedResult(
                total_received=calc.total_received,
                sum_of_sqrt=calc.sum_of_sqrt,
                matched=calc.matched,
                project_id=metadata.project_id,
                application_id=metadata.application_id,
                project_name=metadata.project_name,
                payout_address=metadata.payout_address,
                contributions_count=metadata.contributions_count,
            )
        )

    return augmented
