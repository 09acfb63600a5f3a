"""
qf_calculator/matching/linear_qf.py — Linear quadratic-funding matching engine.

Classic QF ("sum of square roots, squared"). Contributions are first summed
per (contributor, recipient) pair in the contribution graph. For a recipient
with per-contributor totals a_1..a_n:

    sum_of_sqrt    = Σ sqrt(a_i)
    total_received = Σ a_i
    weight         = sum_of_sqrt² − total_received

weight is the cross-term part of the squared sum, so it is zero for a
recipient with a single contributor and never negative. The pool is shared in
proportion to weight:

    matched = weight / W × match_pool        where W = Σ weight

If W == 0 every recipient is matched 0. With ignore_saturation=False the
allocations are additionally clipped in recipient order so their running total
never exceeds the pool; clipped excess is dropped, not redistributed.

All arithmetic is Decimal in a local context of fixed precision, so identical
inputs give bit-identical output.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Iterable

import networkx as nx

from qf_calculator.graph.builder import (
    build_contribution_graph,
    contributor_amounts,
    recipient_nodes,
)
from qf_calculator.models import Calculation, Contribution

logger = logging.getLogger(__name__)

_ZERO = Decimal(0)


@dataclass(frozen=True)
class LinearQFOptions:
    """
    Engine knobs.

    Fields:
        minimum_amount:    Contributions below this are ignored. Upstream
                           filtering already applies it; the engine enforces it
                           again on its own input.
        ignore_saturation: Skip the cumulative pool-cap clipping pass.
        precision:         Significant digits of the decimal context.
    """

    minimum_amount: Decimal = _ZERO
    ignore_saturation: bool = False
    precision: int = 28


def linear_qf(
    contributions: Iterable[Contribution],
    match_pool_usd: Decimal,
    options: LinearQFOptions = LinearQFOptions(),
) -> dict[str, Calculation]:
    """
    Compute QF matches for a set of eligible contributions.

    Args:
        contributions:  Eligible contributions (amounts >= 0).
        match_pool_usd: Matching pool to distribute.
        options:        LinearQFOptions.

    Returns:
        Dict mapping recipient id → Calculation, in first-seen recipient order.
        Recipients without a contribution at or above the minimum are absent.

    Raises:
        ValueError: If any contribution amount is negative.
    """
    G = build_contribution_graph(contributions, options.minimum_amount)
    return linear_qf_from_graph(G, match_pool_usd, options)


def linear_qf_from_graph(
    G: nx.DiGraph,
    match_pool_usd: Decimal,
    options: LinearQFOptions = LinearQFOptions(),
) -> dict[str, Calculation]:
    """
    Compute QF matches from a graph built by build_contribution_graph().

    Same semantics as linear_qf(); lets the orchestrator reuse one graph for
    matching and for the round summary.
    """
    with localcontext() as ctx:
        ctx.prec = options.precision

        # ── Step 1: per-recipient sums ────────────────────────────────────────
        sums: list[tuple[str, Decimal, Decimal, Decimal]] = []
        total_weight = _ZERO
        for node in recipient_nodes(G):
            amounts = contributor_amounts(G, node)
            sum_of_sqrt = sum((a.sqrt() for a in amounts), _ZERO)
            total_received = sum(amounts, _ZERO)
            # Cross terms need two non-zero contributors; anything else is
            # exactly 0 even where sqrt() rounding would leave residue.
            if sum(1 for a in amounts if a > 0) < 2:
                weight = _ZERO
            else:
                weight = max(sum_of_sqrt * sum_of_sqrt - total_received, _ZERO)
            sums.append((G.nodes[node]["id"], total_received, sum_of_sqrt, weight))
            total_weight += weight

        # ── Step 2: share the pool by weight ──────────────────────────────────
        results: dict[str, Calculation] = {}
        allocated = _ZERO
        clipped = 0
        for recipient, total_received, sum_of_sqrt, weight in sums:
            if total_weight == 0:
                matched = _ZERO
            else:
                matched = weight / total_weight * match_pool_usd

            if not options.ignore_saturation:
                remaining = max(match_pool_usd - allocated, _ZERO)
                if matched > remaining:
                    matched = remaining
                    clipped += 1
                allocated += matched

            results[recipient] = Calculation(
                recipient=recipient,
                total_received=total_received,
                sum_of_sqrt=sum_of_sqrt,
                matched=matched,
            )

    if total_weight == 0 and results:
        logger.warning(
            "linear_qf: total match weight is 0 across %d recipients; "
            "no recipient has more than one contributor.",
            len(results),
        )
    if clipped:
        logger.warning("linear_qf: clipped %d allocations to the match pool.", clipped)
    logger.info(
        "linear_qf: %d recipients matched against a pool of %s.",
        len(results),
        match_pool_usd,
    )
    return results
