"""
qf_calculator/tests/test_cli.py — Tests for the command-line interface.

Tests verify:
- `matches` prints the regression fixture as JSON and CSV.
- Missing or corrupt data and unknown rounds exit with EXIT_NOT_FOUND.
- Missing application metadata and invalid QF_* settings exit with EXIT_INTERNAL_ERROR.
- .env values are loaded without overriding the environment.
"""

import json
import os

import pandas as pd
import pytest

from qf_calculator.cli import (
    EXIT_INTERNAL_ERROR,
    EXIT_NOT_FOUND,
    EXIT_OK,
    _load_dotenv,
    build_parser,
    main,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so teardown also removes values written by _load_dotenv()
    for key in ("QF_DATA_DIR", "QF_ENABLE_PASSPORT", "QF_PASSPORT_THRESHOLD", "QF_DECIMAL_PRECISION"):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def run_cli(tmp_path, *args) -> int:
    env_file = str(tmp_path / "absent.env")
    return main(["--env-file", env_file, "--log-level", "ERROR", *args])


def test_matches_prints_json(fixture_data_dir, tmp_path, capsys):
    code = run_cli(tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234", "--data-dir", fixture_data_dir)

    assert code == EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert [r["matched"] for r in payload] == [13.6, 21.6, 64.8]
    assert payload[0]["projectName"] == "Project One"


def test_matches_writes_csv(fixture_data_dir, tmp_path):
    out = tmp_path / "matches.csv"
    code = run_cli(
        tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234",
        "--data-dir", fixture_data_dir, "--format", "csv", "--output", str(out),
    )

    assert code == EXIT_OK
    df = pd.read_csv(out)
    assert df["matched"].tolist() == pytest.approx([13.6, 21.6, 64.8])


def test_matches_applies_passport_flags(fixture_data_dir, tmp_path, capsys):
    code = run_cli(
        tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234",
        "--data-dir", fixture_data_dir, "--enable-passport", "--passport-threshold", "15",
    )

    assert code == EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert [r["totalReceived"] for r in payload] == [1, 5, 17]


def test_data_dir_from_environment(fixture_data_dir, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("QF_DATA_DIR", fixture_data_dir)
    code = run_cli(tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234")
    assert code == EXIT_OK
    assert len(json.loads(capsys.readouterr().out)) == 3


def test_unknown_round_exits_not_found(fixture_data_dir, tmp_path):
    code = run_cli(tmp_path, "matches", "--chain-id", "1", "--round-id", "0xdead", "--data-dir", fixture_data_dir)
    assert code == EXIT_NOT_FOUND


def test_missing_data_file_exits_not_found(fixture_data_dir, tmp_path):
    os.remove(os.path.join(fixture_data_dir, "passport_scores.json"))
    code = run_cli(tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234", "--data-dir", fixture_data_dir)
    assert code == EXIT_NOT_FOUND


def test_corrupt_data_file_exits_not_found(fixture_data_dir, tmp_path):
    with open(os.path.join(fixture_data_dir, "1", "rounds.json"), "w", encoding="utf-8") as fh:
        fh.write("{not json")
    code = run_cli(tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234", "--data-dir", fixture_data_dir)
    assert code == EXIT_NOT_FOUND


@pytest.mark.parametrize("key, value", [("QF_PASSPORT_THRESHOLD", "high"), ("QF_DECIMAL_PRECISION", "many")])
def test_invalid_setting_exits_internal_error(fixture_data_dir, tmp_path, monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    code = run_cli(tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234", "--data-dir", fixture_data_dir)
    assert code == EXIT_INTERNAL_ERROR


def test_missing_metadata_exits_internal_error(fixture_data_dir, tmp_path):
    path = os.path.join(fixture_data_dir, "1", "rounds", "0x1234", "applications.json")
    with open(path, "w", encoding="utf-8") as fh:
        json.dump([], fh)
    code = run_cli(tmp_path, "matches", "--chain-id", "1", "--round-id", "0x1234", "--data-dir", fixture_data_dir)
    assert code == EXIT_INTERNAL_ERROR


def test_summary_prints_banner(fixture_data_dir, tmp_path, capsys):
    code = run_cli(tmp_path, "summary", "--chain-id", "1", "--round-id", "0x1234", "--data-dir", fixture_data_dir)

    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "QF MATCHES" in out
    assert "application-id-3" in out


def test_parser_rejects_non_numeric_min_amount():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["matches", "--chain-id", "1", "--round-id", "r", "--min-amount", "ten"])


def test_parser_defaults_leave_overrides_unset():
    args = build_parser().parse_args(["matches", "--chain-id", "1", "--round-id", "r"])
    assert args.enable_passport is None
    assert args.ignore_saturation is None
    assert args.min_amount is None


def test_load_dotenv_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text('# comment\nQF_DATA_DIR="/from/file"\nQF_ENABLE_PASSPORT=true\n', encoding="utf-8")
    monkeypatch.setenv("QF_ENABLE_PASSPORT", "false")

    loaded = _load_dotenv(str(env_file))

    assert loaded == {"QF_DATA_DIR": "/from/file"}
    assert os.environ["QF_ENABLE_PASSPORT"] == "false"
