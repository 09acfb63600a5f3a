"""
qf_calculator.graph — NetworkX contribution graph layer.

Modules:
    builder — Aggregate contributions into a contributor → recipient DiGraph.

Node types : Contributor, Recipient
Edge types : contributed_to (amount, contributions)
"""
