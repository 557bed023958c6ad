"""
Integration tests for the people, products, investor and stats endpoints.
"""
import pytest


@pytest.mark.integration
class TestPeopleEndpoints:
    """Tests for GET /api/people."""

    def test_list_people_empty(self, client):
        response = client.get("/api/people")

        assert response.status_code == 200
        assert response.json() == {"data": [], "total": 0, "page": 1, "limit": 50}

    def test_list_people_with_startup_ids(self, client, sample_startups, sample_persons):
        acme_id = sample_startups[0].id
        gamma_id = sample_startups[2].id

        response = client.get("/api/people")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [p["name"] for p in data["data"]] == ["Ada Lovelace", "Bob Builder", "Olga Orphan"]
        by_name = {p["name"]: p for p in data["data"]}
        assert by_name["Ada Lovelace"]["startup_id"] == acme_id
        assert by_name["Bob Builder"]["startup_id"] == gamma_id
        assert by_name["Olga Orphan"]["startup_id"] is None

    def test_unknown_sort_orders_by_name(self, client, sample_persons):
        data = client.get("/api/people", params={"sort": "salary", "order": "ASC"}).json()
        assert [p["name"] for p in data["data"]] == ["Ada Lovelace", "Bob Builder", "Olga Orphan"]

    def test_sort_by_role_descending(self, client, sample_persons):
        data = client.get("/api/people", params={"sort": "role", "order": "DESC"}).json()
        assert [p["role"] for p in data["data"]] == ["Founder", "CTO", "CEO"]

    def test_search_company(self, client, sample_persons):
        data = client.get("/api/people", params={"search": "GAMMA"}).json()
        assert data["total"] == 1
        assert data["data"][0]["name"] == "Bob Builder"

    def test_cached_response_is_identical(self, client, sample_persons, query_counter):
        first = client.get("/api/people", params={"search": "a"})
        query_counter.clear()
        second = client.get("/api/people", params={"search": "a"})

        assert second.content == first.content
        assert query_counter == []


@pytest.mark.integration
class TestProductEndpoints:
    """Tests for GET /api/products."""

    def test_list_products(self, client, sample_products):
        response = client.get("/api/products")

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data["data"]] == ["Loose Tool", "Acme Agent", "Gamma Scan"]
        assert data["categories"] == ["agents", "healthcare"]

    def test_filter_by_category(self, client, sample_products):
        data = client.get("/api/products", params={"category": "agents"}).json()
        assert [p["name"] for p in data["data"]] == ["Acme Agent"]
        # category list is never filtered
        assert data["categories"] == ["agents", "healthcare"]


@pytest.mark.integration
class TestVcEndpoints:
    """Tests for GET /api/vcs."""

    def test_list_vcs(self, client, sample_startups):
        acme_id = sample_startups[0].id
        beta_id = sample_startups[1].id

        response = client.get("/api/vcs")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        top = data["data"][0]
        assert top["name"] == "Acme Ventures"
        assert top["count"] == 2
        assert top["companies"] == [
            {"id": acme_id, "name": "Acme AI"},
            {"id": beta_id, "name": "Beta Labs"},
        ]
        for vc in data["data"]:
            assert vc["count"] == len(vc["companies"])

    def test_search(self, client, sample_startups):
        data = client.get("/api/vcs", params={"search": "capital"}).json()
        assert data["total"] == 1
        assert data["data"][0]["name"] == "Beta Capital"

    def test_no_investors(self, client):
        assert client.get("/api/vcs").json() == {"data": [], "total": 0}


@pytest.mark.integration
class TestStatsEndpoints:
    """Tests for GET /api/stats."""

    def test_empty_database(self, client):
        data = client.get("/api/stats").json()

        assert data["totalStartups"] == 0
        assert data["avgRelevance"] == 0
        assert data["newThisWeek"] == 0
        assert data["regions"] == []
        assert data["recent"] == []
        assert data["topFunded"] == []

    def test_stats(self, client, sample_startups):
        response = client.get("/api/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["totalStartups"] == 4
        assert data["avgRelevance"] == 6.5
        assert data["newThisWeek"] == 2
        assert data["regions"] == [
            {"region": "US", "count": 2},
            {"region": "CN", "count": 1},
            {"region": "SG", "count": 1},
        ]
        assert [v["vertical"] for v in data["verticals"]] == ["agents", "coding", "healthcare", "llm"]
        # Delta Code has no stage
        assert [s["stage"] for s in data["stages"]] == ["Seed", "Series A", "Series B"]
        assert [r["name"] for r in data["recent"]] == [
            "Delta Code", "Acme AI", "Beta Labs", "Gamma Health",
        ]

    def test_top_funded_excludes_missing_amounts(self, client, sample_startups):
        top = client.get("/api/stats").json()["topFunded"]

        assert [s["name"] for s in top] == ["Acme AI", "Gamma Health"]
        assert top[0]["funding_value"] == 12500000.0
        assert top[1]["funding_value"] == 40.0

    def test_stats_cached(self, client, sample_startups, query_counter):
        first = client.get("/api/stats")
        query_counter.clear()
        second = client.get("/api/stats")

        assert second.content == first.content
        assert query_counter == []
