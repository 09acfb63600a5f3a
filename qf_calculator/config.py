"""
qf_calculator/config.py — All tunable parameters for the QF calculator.

Per-request knobs (minimum amount, passport threshold) can still be passed in
CalculatorOptions; the values here are the defaults used when a request does
not set them, plus settings that never vary per request (data location,
decimal precision).
"""

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from qf_calculator.models import to_decimal

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CalculatorConfig:
    """
    Immutable configuration for the QF calculator.

    Override by constructing a new CalculatorConfig with the desired values,
    or with CalculatorConfig.from_env().
    """

    # ── Data location ─────────────────────────────────────────────────────────
    data_dir: str = "data"
    # Root of the JSON data tree. Round files live under
    # {data_dir}/{chain_id}/rounds/{round_id}/.

    passport_scores_path: str = "passport_scores.json"
    # Relative to data_dir. Shared by every chain and round.

    # ── Numeric semantics ─────────────────────────────────────────────────────
    decimal_precision: int = 28
    # Significant digits of the local decimal context used by linear_qf().
    # Fixed so that results are bit-identical across runs and hosts.

    # ── Eligibility defaults ──────────────────────────────────────────────────
    enable_passport: bool = False
    # When True, contributions are gated on the contributor's passport.

    passport_threshold: Optional[Decimal] = None
    # With passport enabled: None → require evidence.success,
    # otherwise require raw_score > passport_threshold (strict).

    # ── Matching ──────────────────────────────────────────────────────────────
    ignore_saturation: bool = True
    # The main calculation path scales weights to the pool and skips the
    # cumulative clipping pass.

    # ── Reporting ─────────────────────────────────────────────────────────────
    summary_top_n: int = 5
    # Number of recipients listed in matching_summary()['top_matched'].

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "CalculatorConfig":
        """
        Build a config from QF_* environment variables, falling back to defaults.

        Recognised variables:
            QF_DATA_DIR, QF_ENABLE_PASSPORT, QF_PASSPORT_THRESHOLD,
            QF_DECIMAL_PRECISION.
        """
        env = os.environ if environ is None else environ
        kwargs: dict = {}
        if env.get("QF_DATA_DIR"):
            kwargs["data_dir"] = env["QF_DATA_DIR"]
        if env.get("QF_ENABLE_PASSPORT"):
            kwargs["enable_passport"] = env["QF_ENABLE_PASSPORT"].strip().lower() in _TRUE_VALUES
        if env.get("QF_PASSPORT_THRESHOLD"):
            threshold = to_decimal(env["QF_PASSPORT_THRESHOLD"])
            if threshold is None:
                raise ValueError(
                    f"QF_PASSPORT_THRESHOLD is not a number: {env['QF_PASSPORT_THRESHOLD']!r}"
                )
            kwargs["passport_threshold"] = threshold
        if env.get("QF_DECIMAL_PRECISION"):
            kwargs["decimal_precision"] = int(env["QF_DECIMAL_PRECISION"])
        return cls(**kwargs)


# Singleton default; import this instead of constructing a new one.
DEFAULT_CONFIG = CalculatorConfig()
