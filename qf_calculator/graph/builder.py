"""
qf_calculator/graph/builder.py — Contribution graph construction.

Builds a bipartite NetworkX DiGraph from a round's contributions:

    Contributor ──contributed_to──▶ Recipient

Node keys are ("contributor", address) and ("recipient", application_id)
tuples, so an address that is also used as a recipient id stays two distinct
nodes. Each node carries node_type and id attributes. Repeated contributions
from the same contributor to the same recipient collapse into a single edge
whose `amount` is their sum and whose `contributions` attribute counts them.

NetworkX keeps insertion order for nodes and in-edges, so recipients iterate
in first-seen order and every traversal of the graph is deterministic.
"""

import logging
from decimal import Decimal
from typing import Iterable

import networkx as nx

from qf_calculator.models import Contribution

logger = logging.getLogger(__name__)

CONTRIBUTOR = "Contributor"
RECIPIENT = "Recipient"


def contributor_node(address: str) -> tuple[str, str]:
    return ("contributor", address)


def recipient_node(recipient: str) -> tuple[str, str]:
    return ("recipient", recipient)


def build_contribution_graph(
    contributions: Iterable[Contribution],
    minimum_amount: Decimal = Decimal(0),
) -> nx.DiGraph:
    """
    Aggregate contributions into a contributor → recipient graph.

    Args:
        contributions:  Eligible contributions, in source order.
        minimum_amount: Contributions below this are skipped.

    Returns:
        G: nx.DiGraph with Contributor and Recipient nodes and
           contributed_to edges carrying `amount` (Decimal) and
           `contributions` (int).

    Raises:
        ValueError: If a contribution amount is negative.
    """
    G = nx.DiGraph()
    skipped = 0

    for c in contributions:
        if c.amount < 0:
            raise ValueError(
                f"negative contribution amount {c.amount} from {c.contributor} to {c.recipient}"
            )
        if c.amount < minimum_amount:
            skipped += 1
            continue

        src = contributor_node(c.contributor)
        dst = recipient_node(c.recipient)
        if src not in G:
            G.add_node(src, node_type=CONTRIBUTOR, id=c.contributor)
        if dst not in G:
            G.add_node(dst, node_type=RECIPIENT, id=c.recipient)

        if G.has_edge(src, dst):
            edge = G.edges[src, dst]
            edge["amount"] += c.amount
            edge["contributions"] += 1
        else:
            G.add_edge(src, dst, edge_type="contributed_to", amount=c.amount, contributions=1)

    if skipped:
        logger.debug("Contribution graph: skipped %d contributions below %s.", skipped, minimum_amount)
    logger.debug(
        "Contribution graph: %d contributors, %d recipients, %d edges.",
        sum(1 for _, d in G.nodes(data=True) if d["node_type"] == CONTRIBUTOR),
        sum(1 for _, d in G.nodes(data=True) if d["node_type"] == RECIPIENT),
        G.number_of_edges(),
    )
    return G


def recipient_nodes(G: nx.DiGraph) -> list[tuple[str, str]]:
    """Recipient node keys in first-seen order."""
    return [n for n, d in G.nodes(data=True) if d.get("node_type") == RECIPIENT]


def contributor_count(G: nx.DiGraph) -> int:
    """Number of distinct contributors in the graph."""
    return sum(1 for _, d in G.nodes(data=True) if d.get("node_type") == CONTRIBUTOR)


def contributor_amounts(G: nx.DiGraph, node: tuple[str, str]) -> list[Decimal]:
    """Per-contributor totals flowing into a recipient node, in first-seen order."""
    return [
        d["amount"]
        for _, _, d in G.in_edges(node, data=True)
        if d.get("edge_type") == "contributed_to"
    ]
