"""
Tests for the command-line interface.
"""
from __future__ import annotations

import io
import json

import pytest

from tariffpilot.cli import EXIT_ERROR, EXIT_OK, EXIT_USAGE, main

from tests.conftest import make_raw_state


EN_TEXT = (
    "This heading covers portable automatic data processing machines. "
    "This heading does not cover keyboards presented separately."
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TP_TABLES_PATH", "TP_LOG_LEVEL", "TP_LOG_JSON", "TP_STRICT_TABLES_VERSION"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def state_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps(make_raw_state()), encoding="utf-8")
    return path


@pytest.fixture
def cases_file(tmp_path):
    path = tmp_path / "cases.json"
    path.write_text(json.dumps({"cases": [
        {"reference": "DE-BTI-1", "classification_code": "8471.30", "country_code": "DE",
         "date": "2023-01-15"},
        {"reference": "DE-BTI-2", "classification_code": "8473.30"},
    ]}), encoding="utf-8")
    return path


def _error(captured) -> dict:
    """Last stderr line is the JSON error; log lines come before it."""
    return json.loads(captured.err.strip().splitlines()[-1])


class TestCommands:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_USAGE
        assert "tariffpilot" in capsys.readouterr().out

    def test_decide(self, state_file, capsys):
        assert main(["decide", str(state_file), "--fingerprint"]) == EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["action"] == "fetch_legal_sources"
        assert len(data["fingerprint"]) == 64

    def test_decide_from_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(make_raw_state(current_round=10))))

        assert main(["decide", "-"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out)["action"] == "escalate"

    def test_terminate(self, state_file, capsys):
        assert main(["terminate", str(state_file)]) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == {"should_stop": False}

    @pytest.mark.parametrize("flags,key", [([], "overall"), (["--factors"], "recommendations")])
    def test_score(self, state_file, capsys, flags, key):
        assert main(["score", str(state_file), *flags]) == EXIT_OK
        assert key in json.loads(capsys.readouterr().out)

    def test_consensus(self, cases_file, capsys):
        assert main(["consensus", str(cases_file), "--target", "8471.30"]) == EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["total_cases"] == 2
        assert data["tier"] == "weak"

    def test_relevance(self, cases_file, capsys):
        code = main([
            "relevance", str(cases_file),
            "--target", "8471.30", "--as-of", "2024-06-01",
        ])

        assert code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["target_code"] == "8471.30"
        assert [r["case"]["reference"] for r in data["ranked"]] == ["DE-BTI-1", "DE-BTI-2"]
        assert data["ranked"][0]["relevance"]["score"] == 45

    def test_parse_legal(self, tmp_path, capsys):
        path = tmp_path / "en_8471.txt"
        path.write_text(EN_TEXT, encoding="utf-8")

        assert main(["parse-legal", str(path), "--heading", "8471"]) == EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["heading"] == "8471"
        assert len(data["includes"]) == 1
        assert len(data["excludes"]) == 1


class TestErrors:

    def test_missing_file(self, tmp_path, capsys):
        assert main(["decide", str(tmp_path / "missing.json")]) == EXIT_ERROR
        assert _error(capsys.readouterr())["code"] == "TP_INPUT_ERROR"

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        assert main(["decide", str(path)]) == EXIT_ERROR
        assert _error(capsys.readouterr())["code"] == "TP_INPUT_ERROR"

    def test_unusable_state(self, tmp_path, capsys):
        path = tmp_path / "state.json"
        path.write_text(json.dumps(make_raw_state(status="paused")), encoding="utf-8")

        assert main(["decide", str(path)]) == EXIT_ERROR

        error = _error(capsys.readouterr())
        assert error["code"] == "TP_STATE_VALIDATION_ERROR"
        assert error["report_id"] == "RPT-RAW-001"

    def test_missing_tables_pack(self, tmp_path, state_file, capsys):
        code = main(["--tables", str(tmp_path / "missing.yaml"), "decide", str(state_file)])

        assert code == EXIT_ERROR
        assert _error(capsys.readouterr())["code"] == "TP_TABLES_LOAD_ERROR"

    def test_bad_date(self, cases_file, capsys):
        code = main([
            "relevance", str(cases_file), "--target", "8471.30", "--as-of", "June 2024",
        ])

        assert code == EXIT_ERROR
        assert _error(capsys.readouterr())["code"] == "TP_INPUT_ERROR"

    def test_missing_required_option(self, cases_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["consensus", str(cases_file)])

        assert exc_info.value.code == 2


class TestProductCommands:

    def test_validate_profile(self, tmp_path, capsys):
        profile = tmp_path / "profile.json"
        profile.write_text(json.dumps({"product_name": "Gift set", "is_composite": True}), encoding="utf-8")

        assert main(["validate-profile", str(profile)]) == EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert [e["code"] for e in data["validation"]["errors"]] == [
            "MISSING_FUNCTION", "COMPOSITE_MISSING_COMPONENTS", "COMPOSITE_MISSING_EC",
        ]
        assert len(data["feedback"].splitlines()) > 3

    def test_validate_profile_with_analysis(self, tmp_path, capsys):
        profile = tmp_path / "profile.json"
        profile.write_text(json.dumps({"product_name": "Gift set", "function": "Gift"}), encoding="utf-8")
        analysis = tmp_path / "analysis.json"
        analysis.write_text(json.dumps({"components": [{"name": "Mug"}]}), encoding="utf-8")

        assert main(["validate-profile", str(profile), "--analysis", str(analysis)]) == EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["essential_character"]["errors"] == [
            "Essential character requires at least 2 components for analysis",
        ]

    def test_malformed_profile(self, tmp_path, capsys):
        profile = tmp_path / "profile.json"
        profile.write_text(json.dumps(["not", "a", "profile"]), encoding="utf-8")

        assert main(["validate-profile", str(profile)]) == EXIT_ERROR
        assert _error(capsys.readouterr())["code"] == "TP_STATE_VALIDATION_ERROR"

    def test_check_code(self, capsys):
        assert main(["check-code", "8471.30.00.10", "--country", "EU"]) == EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["code"] == "8471.30.00"
        assert data["truncated"] is True
