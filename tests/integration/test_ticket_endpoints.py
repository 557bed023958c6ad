"""
Integration tests for suggestion, correction and review-flag submission.
"""
import pytest

from startup_tracker.core.models import FeedbackTicket, StartupSuggestion


@pytest.mark.integration
class TestSuggest:
    """Tests for POST /api/suggest."""

    def test_new_suggestion_is_stored(self, client, test_db):
        response = client.post(
            "/api/suggest",
            json={"name": "  NewCo AI ", "website": "newco.ai", "notes": "Vector search"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        suggestion = test_db.query(StartupSuggestion).one()
        assert suggestion.name == "NewCo AI"
        assert suggestion.website == "newco.ai"
        assert suggestion.notes == "Vector search"
        assert suggestion.status == "pending"

    def test_existing_startup_not_stored(self, client, test_db, sample_startups):
        response = client.post("/api/suggest", json={"name": "acme ai"})

        assert response.status_code == 200
        data = response.json()
        assert data["exists"] is True
        assert data["message"] == "Acme AI is already in our database!"
        assert test_db.query(StartupSuggestion).count() == 0

    def test_pending_duplicate_not_stored(self, client, test_db):
        client.post("/api/suggest", json={"name": "NewCo"})
        response = client.post("/api/suggest", json={"name": "newco"})

        assert response.status_code == 200
        assert response.json()["duplicate"] is True
        assert test_db.query(StartupSuggestion).count() == 1

    def test_subject_alias(self, client, test_db):
        response = client.post("/api/suggest", json={"subject": "Aliased Co", "details": "via subject"})

        assert response.json()["success"] is True
        assert test_db.query(StartupSuggestion).one().notes == "via subject"

    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": "A"}, {"name": "   "}])
    def test_name_required(self, client, test_db, body):
        response = client.post("/api/suggest", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Company name is required"}
        assert test_db.query(StartupSuggestion).count() == 0

    def test_unknown_type(self, client):
        response = client.post("/api/suggest", json={"type": "spam", "name": "NewCo"})

        assert response.status_code == 400
        assert "type must be one of" in response.json()["error"]

    def test_malformed_json(self, client):
        response = client.post(
            "/api/suggest",
            content="{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request")

    def test_correction_ticket(self, client, test_db, sample_startups):
        acme_id = sample_startups[0].id
        response = client.post(
            "/api/suggest",
            json={
                "type": "correction",
                "subject": "Wrong stage",
                "details": "They raised a Series A",
                "startup_name": "Acme AI",
                "startup_id": acme_id,
            },
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        ticket = test_db.query(FeedbackTicket).one()
        assert ticket.type == "correction"
        assert ticket.startup_id == acme_id
        assert ticket.subject == "Wrong stage"
        assert test_db.query(StartupSuggestion).count() == 0

    def test_feedback_requires_subject_or_details(self, client, test_db):
        response = client.post("/api/suggest", json={"type": "feedback"})

        assert response.status_code == 400
        assert test_db.query(FeedbackTicket).count() == 0


@pytest.mark.integration
class TestVerify:
    """Tests for POST /api/verify."""

    def test_flag_for_review(self, client, test_db, sample_startups):
        acme_id = sample_startups[0].id
        response = client.post("/api/verify", json={"startup_id": acme_id, "startup_name": "Acme AI"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        ticket = test_db.query(FeedbackTicket).one()
        assert ticket.type == "correction"
        assert ticket.startup_id == acme_id
        assert ticket.status == "pending"

    @pytest.mark.parametrize("body", [{}, {"startup_name": "Acme AI"}, {"startup_id": 0}])
    def test_missing_startup_id(self, client, test_db, body):
        response = client.post("/api/verify", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing startup_id"}
        assert test_db.query(FeedbackTicket).count() == 0

    def test_non_integer_startup_id(self, client):
        response = client.post("/api/verify", json={"startup_id": "abc"})

        assert response.status_code == 400
        assert "startup_id" in response.json()["error"]
