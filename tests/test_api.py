"""
Tests for the HTTP API.

The client is entered as a context manager so the lifespan runs and the
tables pack is loaded onto app.state.
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tariffpilot import __version__
from tariffpilot.api.main import create_app
from tariffpilot.config import Settings

from tests.conftest import make_raw_state


EN_8471 = (
    "This heading covers portable automatic data processing machines weighing not more "
    "than 10 kg. This heading does not cover keyboards presented separately. "
    "Classification applies provided that the machine contains a central processing unit."
)

RAW_PROFILE = {
    "product_name": "Laptop computer",
    "primary_function": "Portable automatic data processing machine",
    "material_composition": "60% aluminium housing, 40% plastics",
    "essential_character": "Central processing unit and display",
}

RAW_CASES = [
    {"bti_number": "DE-BTI-1", "hs_code": "8471.30", "country": "DE", "issue_date": "2023-01-15"},
    {"reference": "DE-BTI-2", "classification_code": "8471.30", "country_code": "DE"},
    {"reference": "DE-BTI-3", "classification_code": "8473.30", "country_code": "DE"},
]


@pytest.fixture
def client():
    app = create_app(Settings.from_env({"TP_LOG_JSON": "false"}))
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:

    def test_health(self, client, tables):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["tables"]["id"] == "tariffpilot-default"
        assert data["tables"]["content_hash"] == tables.content_hash

    def test_request_id_header(self, client):
        response = client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 8


# =============================================================================
# Decisions
# =============================================================================

class TestDecide:

    def test_next_action(self, client, tables):
        response = client.post("/decide", json=make_raw_state())

        assert response.status_code == 200
        data = response.json()
        assert data["report_id"] == "RPT-RAW-001"
        assert data["decision"]["action"] == "fetch_legal_sources"
        assert data["decision"]["agent"] == "HSLegalExpert"
        assert data["decision"]["specific_request"] == {"headings": ["8471", "8473"]}
        assert len(data["fingerprint"]) == 64
        assert data["tables_hash"] == tables.content_hash

    def test_fingerprint_stable(self, client):
        first = client.post("/decide", json=make_raw_state()).json()
        second = client.post("/decide", json=make_raw_state()).json()

        assert first["fingerprint"] == second["fingerprint"]

    def test_max_rounds_escalates(self, client):
        data = client.post("/decide", json=make_raw_state(current_round=10)).json()

        assert data["decision"]["action"] == "escalate"

    def test_unusable_snapshot(self, client):
        response = client.post("/decide", json=make_raw_state(current_round="fourth"))

        assert response.status_code == 422
        assert response.json()["code"] == "TP_STATE_VALIDATION_ERROR"
        assert response.json()["report_id"] == "RPT-RAW-001"

    def test_unknown_status(self, client):
        response = client.post("/decide", json=make_raw_state(status="paused"))

        assert response.status_code == 422


class TestTerminate:

    def test_continue(self, client):
        response = client.post("/terminate", json=make_raw_state())

        assert response.json() == {"should_stop": False}

    def test_stop_at_max_rounds(self, client):
        data = client.post("/terminate", json=make_raw_state(current_round=10)).json()

        assert data == {
            "should_stop": True,
            "reason": "Maximum rounds reached",
            "status": "escalated",
        }


# =============================================================================
# Confidence
# =============================================================================

class TestConfidence:

    def test_score(self, client):
        data = client.post("/confidence", json=make_raw_state()).json()

        # product 95, precedent not searched 70, validation not run 50
        assert data["breakdown"]["product"]["score"] == 95
        assert data["breakdown"]["precedent"]["score"] == 70
        assert data["penalties"] == 0
        assert data["overall"] == 35

    def test_factors(self, client):
        data = client.post("/confidence/factors", json=make_raw_state()).json()

        assert data["overall_score"] == 35
        assert [r["area"] for r in data["recommendations"]] == ["legal", "gir"]


# =============================================================================
# Precedents
# =============================================================================

class TestPrecedents:

    def test_consensus(self, client):
        response = client.post(
            "/precedents/consensus",
            json={"target_code": "8471.30", "cases": RAW_CASES},
        )

        data = response.json()
        assert data["consensus_code"] == "8471.30"
        assert data["total_cases"] == 3
        assert data["tier"] == "weak"
        assert data["conflicting_cases"][0]["reference"] == "DE-BTI-3"

    def test_relevance_ranking(self, client):
        response = client.post("/precedents/relevance", json={
            "target_code": "8471.30",
            "cases": list(reversed(RAW_CASES)),
            "as_of": "2024-06-01",
        })

        ranked = response.json()["ranked"]
        assert [r["case"]["reference"] for r in ranked] == ["DE-BTI-1", "DE-BTI-2", "DE-BTI-3"]
        assert ranked[0]["relevance"]["score"] == 45
        assert ranked[0]["relevance"]["normalized"] == 60

    def test_validate(self, client):
        data = client.post(
            "/precedents/validate",
            json={"target_code": "8517.62", "cases": RAW_CASES[:2]},
        ).json()

        assert data["valid"] is False
        assert data["confidence_impact"] == -15
        assert data["issues"][0]["type"] == "precedent_conflict"

    def test_malformed_cases_skipped(self, client):
        data = client.post(
            "/precedents/consensus",
            json={"target_code": "8471.30", "cases": [RAW_CASES[0], "bad", 7]},
        ).json()

        assert data["total_cases"] == 1

    def test_missing_target(self, client):
        response = client.post("/precedents/consensus", json={"cases": RAW_CASES})

        assert response.status_code == 422


# =============================================================================
# Legal
# =============================================================================

class TestLegal:

    def test_parse(self, client):
        data = client.post("/legal/parse", json={"text": EN_8471, "heading": "8471"}).json()

        assert data["heading"] == "8471"
        assert len(data["includes"]) == 1
        assert data["excludes"] == ["This heading does not cover keyboards presented separately"]
        assert len(data["conditions"]) == 1

    def test_match_and_validate(self, client):
        data = client.post("/legal/match", json={
            "text": EN_8471,
            "heading": "8471",
            "product_profile": RAW_PROFILE,
            "code": "8471.30",
        }).json()

        assert data["match"]["matches_includes"] is True
        assert data["match"]["confidence_adjustment"] == 5
        assert data["validation"]["valid"] is True
        assert data["validation"]["confirmations"] == ["Product matches inclusion criteria for 8471"]

    def test_match_without_code(self, client):
        data = client.post("/legal/match", json={
            "text": EN_8471,
            "product_profile": RAW_PROFILE,
        }).json()

        assert "validation" not in data

    def test_malformed_profile(self, client):
        response = client.post("/legal/match", json={
            "text": EN_8471,
            "product_profile": {"materials": "aluminium"},
        })

        assert response.status_code == 422
        assert response.json() == {
            "code": "TP_STATE_VALIDATION_ERROR",
            "message": "product_profile is malformed",
        }


# =============================================================================
# Product
# =============================================================================

class TestProduct:

    def test_validate_profile_with_feedback(self, client):
        data = client.post("/product/validate", json={
            "product_profile": {"material_composition": "ceramic", "readiness_score": 90},
        }).json()

        assert data["validation"]["valid"] is False
        assert [e["code"] for e in data["validation"]["errors"]] == [
            "MISSING_NAME", "MISSING_FUNCTION",
        ]
        assert data["feedback"].splitlines()[0] == (
            "• standardized_name is required - provide precise product name"
        )
        assert "essential_character" not in data

    def test_validate_essential_character_analysis(self, client):
        data = client.post("/product/validate", json={
            "product_profile": RAW_PROFILE,
            "essential_character_analysis": {
                "components": [
                    {"name": "Mug", "weight_percent": 70, "value_percent": 40, "function": "Holds tea"},
                    {"name": "Tea", "bulk_percent": 30, "value_percent": 60, "functional_role": "Consumable"},
                ],
                "essential_component": "Mug",
                "justification": "Largest by bulk and gives the set its use",
            },
        }).json()

        assert data["feedback"] == ""
        assert data["essential_character"] == {
            "valid": True,
            "errors": [],
            "totals": {"bulk": 100.0, "value": 100.0},
        }

    @pytest.mark.parametrize("country,code,expected", [
        ("IL", "847130001012", "8471.30.00.10"),
        ("US", "8471300150", "8471.30.0150"),
        (None, "8471.30", "8471.30"),
    ])
    def test_hs_format(self, client, country, code, expected):
        data = client.post("/product/hs-format", json={"code": code, "country": country}).json()

        assert data["valid"] is True
        assert data["code"] == expected

    def test_hs_format_too_short(self, client):
        data = client.post("/product/hs-format", json={"code": "8471.30", "country": "EU"}).json()

        assert data["valid"] is False
        assert data["suggestion"].endswith("8471.30.00")
