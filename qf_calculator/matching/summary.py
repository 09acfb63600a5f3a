"""
qf_calculator/matching/summary.py — Round-level summaries of a QF calculation.

Two views on a finished calculation:
    results_frame()     — pandas DataFrame of AugmentedResults (external column
                          names, float amounts) for tabular export.
    matching_summary()  — distribution statistics of the match, including the
                          Herfindahl-Hirschman Index of match shares.

HHI = Σ(share_i²) × 10,000, where share_i is recipient i's fraction of the
total matched amount. 10,000 means one recipient took the whole pool;
10,000 / n means the pool was split evenly across n recipients.
"""

import logging
from decimal import Decimal
from typing import Optional

import networkx as nx
import numpy as np
import pandas as pd

from qf_calculator.graph.builder import contributor_count
from qf_calculator.models import AugmentedResult, Calculation

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "applicationId",
    "projectId",
    "projectName",
    "payoutAddress",
    "contributionsCount",
    "totalReceived",
    "sumOfSqrt",
    "matched",
]


def results_frame(results: list[AugmentedResult]) -> pd.DataFrame:
    """
    Tabulate augmented results, one row per recipient, in result order.

    Returns:
        DataFrame with RESULT_COLUMNS. Empty (but with the columns) when
        results is empty.
    """
    if not results:
        return pd.DataFrame(columns=RESULT_COLUMNS)
    return pd.DataFrame([r.to_dict() for r in results])[RESULT_COLUMNS]


def compute_match_hhi(matched: list[Decimal]) -> float:
    """
    HHI of match shares on the 0–10,000 scale.

    Returns 0.0 when nothing was matched.
    """
    values = np.array([float(m) for m in matched], dtype=float)
    total = values.sum()
    if total <= 0:
        return 0.0
    shares = values / total
    return float(np.sum(shares ** 2) * 10_000)


def matching_summary(
    calculations: dict[str, Calculation],
    match_pool_usd: Decimal,
    graph: Optional[nx.DiGraph] = None,
    top_n: int = 5,
) -> dict:
    """
    Summarise the distribution of a calculation.

    Args:
        calculations:   Output of linear_qf().
        match_pool_usd: Pool the calculation was run against.
        graph:          Contribution graph the calculation was built from.
                        Required for the distinct-contributor count; None
                        reports contributors as None.
        top_n:          Number of recipients in 'top_matched'.

    Returns:
        {
            'recipients': int,
            'contributors': int | None,
            'total_received': float,
            'total_matched': float,
            'unallocated': float,
            'match_hhi': float,
            'top_matched': [{'recipient', 'matched', 'share'}...],
        }
    """
    total_received = sum((c.total_received for c in calculations.values()), Decimal(0))
    total_matched = sum((c.matched for c in calculations.values()), Decimal(0))

    ranked = sorted(calculations.values(), key=lambda c: c.matched, reverse=True)
    top = [
        {
            "recipient": c.recipient,
            "matched": float(c.matched),
            "share": round(float(c.matched / total_matched), 4) if total_matched > 0 else 0.0,
        }
        for c in ranked[:top_n]
    ]

    summary = {
        "recipients": len(calculations),
        "contributors": contributor_count(graph) if graph is not None else None,
        "total_received": float(total_received),
        "total_matched": float(total_matched),
        "unallocated": float(max(match_pool_usd - total_matched, Decimal(0))),
        "match_hhi": round(compute_match_hhi([c.matched for c in calculations.values()]), 2),
        "top_matched": top,
    }

    logger.info(
        "Matching summary: %d recipients, %.2f of %.2f matched, HHI %.0f.",
        summary["recipients"],
        summary["total_matched"],
        float(match_pool_usd),
        summary["match_hhi"],
    )
    return summary
