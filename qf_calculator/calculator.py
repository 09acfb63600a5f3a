"""
qf_calculator/calculator.py — Single-call orchestrator for one round.

Wires the round data source to the calculation core in dependency order:

    1. Load votes, applications, rounds and passport scores
    2. Resolve the round's configuration
    3. Eligibility filter (minimum amount + passport)
    4. Contribution graph + linear QF
    5. Join with application metadata

Usage:
    from qf_calculator.calculator import Calculator, CalculatorOptions
    from qf_calculator.ingestion.data_provider import FileSystemDataProvider
    from qf_calculator.ingestion.sources import RoundDataSource

    source = RoundDataSource(FileSystemDataProvider("data"))
    results = Calculator(source, CalculatorOptions(chain_id="1", round_id="0x1234")).calculate()
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import networkx as nx

from qf_calculator.config import DEFAULT_CONFIG, CalculatorConfig
from qf_calculator.errors import RoundNotFoundError
from qf_calculator.graph.builder import build_contribution_graph
from qf_calculator.ingestion.sources import RoundDataSource
from qf_calculator.matching.augment import augment_results, build_metadata_index
from qf_calculator.matching.eligibility import (
    EligibilityPolicy,
    build_passport_index,
    filter_contributions,
)
from qf_calculator.matching.linear_qf import LinearQFOptions, linear_qf_from_graph
from qf_calculator.models import AugmentedResult, Calculation, Contribution, RoundConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculatorOptions:
    """
    Per-request options. None means "use the round or config default".

    Fields:
        chain_id:           Chain the round lives on.
        round_id:           Round identifier.
        minimum_amount:     Overrides the round's minimumAmount.
        passport_threshold: Overrides CalculatorConfig.passport_threshold.
        enable_passport:    Overrides CalculatorConfig.enable_passport.
        ignore_saturation:  Overrides CalculatorConfig.ignore_saturation.
    """

    chain_id: str
    round_id: str
    minimum_amount: Optional[Decimal] = None
    passport_threshold: Optional[Decimal] = None
    enable_passport: Optional[bool] = None
    ignore_saturation: Optional[bool] = None


@dataclass
class CalculationRun:
    """
    Complete output of one calculation, intermediate results included.

    results is what transports serialise; the rest is kept for summaries
    and inspection.
    """

    round_config: RoundConfig
    policy: EligibilityPolicy
    total_contributions: int
    eligible_contributions: list[Contribution]
    graph: nx.DiGraph
    calculations: dict[str, Calculation]
    results: list[AugmentedResult] = field(default_factory=list)


class Calculator:
    """
    Compute QF matches for one round.

    The data source is injected; nothing here reads global state, so one
    Calculator per request can run concurrently with others.

    Args:
        source:  RoundDataSource supplying the four datasets.
        options: CalculatorOptions for this request.
        config:  CalculatorConfig with defaults and decimal precision.
    """

    def __init__(
        self,
        source: RoundDataSource,
        options: CalculatorOptions,
        config: CalculatorConfig = DEFAULT_CONFIG,
    ) -> None:
        self.source = source
        self.options = options
        self.config = config

    def _find_round(self, rounds: list[RoundConfig]) -> RoundConfig:
        for round_config in rounds:
            if round_config.round_id == self.options.round_id:
                return round_config
        raise RoundNotFoundError(self.options.round_id)

    def _policy(self, round_config: RoundConfig) -> EligibilityPolicy:
        minimum = self.options.minimum_amount
        if minimum is None:
            minimum = round_config.minimum_amount
        if minimum is None:
            minimum = Decimal(0)

        enable_passport = self.options.enable_passport
        if enable_passport is None:
            enable_passport = self.config.enable_passport

        threshold = self.options.passport_threshold
        if threshold is None:
            threshold = self.config.passport_threshold

        return EligibilityPolicy(
            minimum_amount=minimum,
            enable_passport=enable_passport,
            passport_threshold=threshold,
        )

    def run(self) -> CalculationRun:
        """
        Execute the full calculation and keep every intermediate result.

        Raises:
            DataSourceUnavailableError: A dataset is missing.
            RoundNotFoundError:         The round id is not in rounds.json.
            MissingMetadataError:       A matched recipient has no application.
        """
        chain_id, round_id = self.options.chain_id, self.options.round_id
        logger.info("Calculating matches for chain %s round %s.", chain_id, round_id)

        # ── Step 1: load every dataset before touching any of them ────────────
        contributions = self.source.load_contributions(chain_id, round_id)
        applications = self.source.load_recipient_metadata(chain_id, round_id)
        rounds = self.source.load_round_configs(chain_id)
        passport_scores = self.source.load_identity_scores()

        # ── Step 2: round configuration ───────────────────────────────────────
        round_config = self._find_round(rounds)
        policy = self._policy(round_config)

        # ── Step 3: eligibility ───────────────────────────────────────────────
        passport_index = build_passport_index(passport_scores)
        eligible = filter_contributions(contributions, passport_index, policy)

        # ── Step 4: matching ──────────────────────────────────────────────────
        ignore_saturation = self.options.ignore_saturation
        if ignore_saturation is None:
            ignore_saturation = self.config.ignore_saturation

        qf_options = LinearQFOptions(
            minimum_amount=policy.minimum_amount,
            ignore_saturation=ignore_saturation,
            precision=self.config.decimal_precision,
        )
        G = build_contribution_graph(eligible, qf_options.minimum_amount)
        calculations = linear_qf_from_graph(G, round_config.match_pool_usd, qf_options)

        # ── Step 5: join with application metadata ────────────────────────────
        results = augment_results(calculations, build_metadata_index(applications))

        logger.info(
            "Round %s: %d of %d contributions eligible, %d recipients matched.",
            round_id,
            len(eligible),
            len(contributions),
            len(results),
        )
        return CalculationRun(
            round_config=round_config,
            policy=policy,
            total_contributions=len(contributions),
            eligible_contributions=eligible,
            graph=G,
            calculations=calculations,
            results=results,
        )

    def calculate(self) -> list[AugmentedResult]:
        """Run the calculation and return only the augmented results."""
        return self.run().results


def calculate_matches(
    source: RoundDataSource,
    options: CalculatorOptions,
    config: CalculatorConfig = DEFAULT_CONFIG,
) -> list[AugmentedResult]:
    """Functional shorthand for Calculator(source, options, config).calculate()."""
    return Calculator(source, options, config).calculate()
