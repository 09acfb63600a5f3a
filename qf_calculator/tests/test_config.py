"""
qf_calculator/tests/test_config.py — Tests for CalculatorConfig.
"""

import dataclasses
from decimal import Decimal

import pytest

from qf_calculator.config import DEFAULT_CONFIG, CalculatorConfig


def test_defaults():
    assert DEFAULT_CONFIG.data_dir == "data"
    assert DEFAULT_CONFIG.enable_passport is False
    assert DEFAULT_CONFIG.passport_threshold is None
    assert DEFAULT_CONFIG.ignore_saturation is True
    assert DEFAULT_CONFIG.decimal_precision == 28


def test_config_is_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_CONFIG.data_dir = "elsewhere"


def test_from_env_reads_qf_variables():
    config = CalculatorConfig.from_env({
        "QF_DATA_DIR": "/srv/data",
        "QF_ENABLE_PASSPORT": "Yes",
        "QF_PASSPORT_THRESHOLD": "20.5",
        "QF_DECIMAL_PRECISION": "40",
    })
    assert config.data_dir == "/srv/data"
    assert config.enable_passport is True
    assert config.passport_threshold == Decimal("20.5")
    assert config.decimal_precision == 40


def test_from_env_empty_uses_defaults():
    assert CalculatorConfig.from_env({}) == DEFAULT_CONFIG


def test_from_env_rejects_bad_threshold():
    with pytest.raises(ValueError, match="QF_PASSPORT_THRESHOLD"):
        CalculatorConfig.from_env({"QF_PASSPORT_THRESHOLD": "high"})
