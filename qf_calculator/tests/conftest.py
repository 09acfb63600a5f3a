"""
qf_calculator/tests/conftest.py — Shared pytest fixtures for the QF calculator.

The JSON fixtures under tests/fixtures/ describe round 0x1234 on chain 1:
three applications whose contributions sum to {15, 10, 34} with sum-of-sqrt
{7, 8, 14}. Against the 100 USD pool the expected matches are
{13.6, 21.6, 64.8}.

Fixtures:
    fixture_routes   — Default path → fixture mapping for FixtureDataProvider.
    round_source     — RoundDataSource serving the default routes.
    make_source      — Factory building a RoundDataSource with overridden routes.
    fixture_data_dir — Temporary data tree on disk with the same layout.
"""

import json
import os
import shutil
from decimal import Decimal

import pytest

from qf_calculator.errors import DataSourceUnavailableError
from qf_calculator.ingestion.data_provider import DataProvider
from qf_calculator.ingestion.sources import RoundDataSource

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

CHAIN_ID = "1"
ROUND_ID = "0x1234"


def load_fixture(name: str):
    """Parse tests/fixtures/{name}.json the same way FileSystemDataProvider does."""
    with open(os.path.join(FIXTURES_DIR, f"{name}.json"), encoding="utf-8") as fh:
        return json.load(fh, parse_float=Decimal)


class FixtureDataProvider(DataProvider):
    """
    Serve data from a {path: fixture} mapping.

    A string value names a file in tests/fixtures/, any other value is
    returned as-is, and a missing or None entry behaves like a missing file.
    """

    def __init__(self, routes: dict):
        self.routes = routes

    def load_file(self, description: str, path: str):
        fixture = self.routes.get(path)
        if fixture is None:
            raise DataSourceUnavailableError(description)
        if not isinstance(fixture, str):
            return fixture
        return load_fixture(fixture)


def make_routes(round_id: str = ROUND_ID, **overrides) -> dict:
    """Default routes for chain 1, with keyword overrides.

    Keyword names: votes, applications, rounds, passport_scores. The votes
    and applications fixtures are served under round_id.
    """
    routes = {
        "votes": "votes",
        "applications": "applications",
        "rounds": "rounds",
        "passport_scores": "passport_scores",
    }
    routes.update(overrides)
    return {
        f"{CHAIN_ID}/rounds/{round_id}/votes.json": routes["votes"],
        f"{CHAIN_ID}/rounds/{round_id}/applications.json": routes["applications"],
        f"{CHAIN_ID}/rounds.json": routes["rounds"],
        "passport_scores.json": routes["passport_scores"],
    }


@pytest.fixture
def fixture_routes() -> dict:
    return make_routes()


@pytest.fixture
def round_source(fixture_routes) -> RoundDataSource:
    return RoundDataSource(FixtureDataProvider(fixture_routes))


@pytest.fixture
def make_source():
    """Factory: make_source(votes=None, ...) → RoundDataSource over overridden routes."""

    def _make(round_id: str = ROUND_ID, **overrides) -> RoundDataSource:
        return RoundDataSource(FixtureDataProvider(make_routes(round_id, **overrides)))

    return _make


@pytest.fixture
def fixture_data_dir(tmp_path) -> str:
    """Copy the fixtures into a {chain}/rounds/{round}/ tree under tmp_path."""
    round_dir = tmp_path / CHAIN_ID / "rounds" / ROUND_ID
    round_dir.mkdir(parents=True)
    shutil.copy(os.path.join(FIXTURES_DIR, "votes.json"), round_dir / "votes.json")
    shutil.copy(os.path.join(FIXTURES_DIR, "applications.json"), round_dir / "applications.json")
    shutil.copy(os.path.join(FIXTURES_DIR, "rounds.json"), tmp_path / CHAIN_ID / "rounds.json")
    shutil.copy(os.path.join(FIXTURES_DIR, "passport_scores.json"), tmp_path / "passport_scores.json")
    return str(tmp_path)
