"""
qf_calculator.matching — The quadratic-funding calculation core.

Modules:
    eligibility — Minimum-amount and passport gating of contributions.
    linear_qf   — Sum-of-square-roots matching engine.
    augment     — Join engine output with application metadata.
    summary     — DataFrame export and match distribution statistics.

Data flow:
    contributions → filter_contributions() → linear_qf() → augment_results()
"""
