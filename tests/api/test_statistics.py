"""
End-to-end tests for the admin statistics endpoints under /api/stats.
"""

import pytest


@pytest.fixture
def seeded(client, alice, bob, create_comment, add_sub_comment):
    bug = create_comment(alice, category="BUG_REPORT", priority="HIGH")
    create_comment(alice, category="FEATURE_REQUEST", priority="LOW", status="RESOLVED")
    idea = create_comment(bob, category="BUG_REPORT", priority="CRITICAL")
    add_sub_comment(bob, bug["id"])
    add_sub_comment(alice, bug["id"])
    add_sub_comment(alice, idea["id"])
    return {"bug": bug, "idea": idea}


class TestAccess:
    @pytest.mark.parametrize("path", ["/general", "/users", "/timeline"])
    def test_regular_users_are_forbidden(self, client, alice, path):
        response = client.get(f"/api/stats{path}", headers=alice.headers)

        assert response.status_code == 403
        assert response.get_json()["error"]["kind"] == "ForbiddenError"

    def test_requires_authentication(self, client):
        assert client.get("/api/stats/general").status_code == 401


class TestGeneral:
    def test_overview_and_sections(self, client, admin, seeded):
        response = client.get("/api/stats/general", headers=admin.headers)

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["overview"] == {
            "totalComments": 3,
            "totalUsers": 3,
            "totalSubComments": 3,
            "averageSubCommentsPerPost": 1.0,
        }

        categories = {row["category"]: row for row in data["categoryStats"]}
        assert categories["BUG_REPORT"]["count"] == 2
        assert categories["BUG_REPORT"]["averagePriority"] == pytest.approx(3.5)
        assert sum(row["percentage"] for row in data["categoryStats"]) == pytest.approx(100)

        for row in data["statusStats"]:
            assert set(row["priorityDistribution"]) == {"LOW", "MEDIUM", "HIGH", "CRITICAL"}

        assert len(data["recentActivity"]) == 3
        assert {row["authorName"] for row in data["recentActivity"]} == {"Alice", "Bob"}

    def test_empty_database(self, client, admin):
        data = client.get("/api/stats/general", headers=admin.headers).get_json()["data"]

        assert data["overview"]["totalComments"] == 0
        assert data["overview"]["averageSubCommentsPerPost"] == 0
        assert data["categoryStats"] == []
        assert data["recentActivity"] == []


class TestUsers:
    def test_rollup_per_author(self, client, admin, alice, bob, seeded):
        response = client.get("/api/stats/users", headers=admin.headers)
        rows = response.get_json()["data"]

        assert [row["userId"] for row in rows] == [alice.id, bob.id]
        assert rows[0]["totalComments"] == 2
        assert rows[0]["totalSubComments"] == 2
        assert rows[0]["categoriesCount"] == 2
        assert rows[1]["userEmail"] == "bob@example.com"
        assert rows[1]["averagePriority"] == 4


class TestTimeline:
    @pytest.mark.parametrize("period", ["daily", "weekly", "monthly"])
    def test_every_comment_lands_in_one_bucket(self, client, admin, seeded, period):
        response = client.get(f"/api/stats/timeline?period={period}", headers=admin.headers)

        assert response.status_code == 200
        buckets = response.get_json()["data"]
        assert sum(row["comments"] for row in buckets) == 3
        assert [row["period"] for row in buckets] == sorted(row["period"] for row in buckets)

    def test_default_period_is_daily(self, client, admin, seeded):
        buckets = client.get("/api/stats/timeline", headers=admin.headers).get_json()["data"]

        assert all(len(row["period"]) == len("2024-01-31") for row in buckets)

    def test_unknown_period(self, client, admin):
        response = client.get("/api/stats/timeline?period=yearly", headers=admin.headers)

        assert response.status_code == 400
        assert "period" in response.get_json()["error"]["details"]
