"""
qf_calculator — Quadratic-funding match calculator for crowdfunding rounds.

Given the contributions of a round, an eligibility policy and a fixed matching
pool, computes the per-recipient matched amount and joins it with the
recipient's application metadata.

Subpackages:
- qf_calculator.matching   — eligibility filter, linear QF engine, result join.
- qf_calculator.graph      — contributor → recipient contribution graph.
- qf_calculator.ingestion  — JSON data providers and the round data source.
"""

__version__ = "0.1.0"
