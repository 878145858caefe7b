"""Tests for user endpoints (F4)."""


class TestRegister:
    """Tests for POST /api/users."""

    def test_register(self, client):
        response = client.post(
            "/api/users",
            json={"address": "0xA", "username": "alice", "is_instructor": True},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "alice"
        assert data["is_instructor"] is True
        assert data["reputation_score"] == 0
        assert data["token_balance"] == "0.0"
        assert data["achievements"] == []

    def test_duplicate_address_conflict(self, client):
        client.post("/api/users", json={"address": "0xA", "username": "alice"})
        response = client.post("/api/users", json={"address": "0xA", "username": "other"})
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "AlreadyRegistered"
        assert body["field"] == "address"

    def test_duplicate_username_conflict(self, client):
        client.post("/api/users", json={"address": "0xA", "username": "alice"})
        response = client.post("/api/users", json={"address": "0xB", "username": "alice"})
        assert response.status_code == 409
        assert response.json()["error"] == "UsernameTaken"

    def test_blank_username_rejected(self, client):
        response = client.post("/api/users", json={"address": "0xA", "username": "   "})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidUsername"

    def test_missing_field(self, client):
        response = client.post("/api/users", json={"address": "0xA"})
        assert response.status_code == 422


class TestProfile:
    """Tests for profile lookups."""

    def test_unknown_user(self, client):
        response = client.get("/api/users/0xZ")
        assert response.status_code == 404
        assert response.json()["error"] == "NotRegistered"

    def test_profile_after_completion(self, seeded):
        seeded.post("/api/sessions", json={"student": "0xB", "skill_id": 1})
        seeded.post("/api/sessions/1/complete", json={"assessment_score": 90, "rating": 400})

        student = seeded.get("/api/users/0xB").json()
        assert student["total_skills_learned"] == 1
        assert student["tokens_spent"] == "100.0"
        assert student["tokens_earned"] == "9.0"
        assert student["token_balance"] == "59.0"
        assert student["achievements"] == ["First Steps"]

        instructor = seeded.get("/api/users/0xA").json()
        assert instructor["reputation_score"] == 4
        assert instructor["token_balance"] == "100.0"
        assert instructor["achievements"] == ["First Lesson"]

    def test_created_and_learned_skills(self, seeded):
        seeded.post("/api/sessions", json={"student": "0xB", "skill_id": 1})
        created = seeded.get("/api/users/0xA/skills/created").json()
        learned = seeded.get("/api/users/0xB/skills/learned").json()
        assert created["count"] == 1
        assert created["skills"][0]["title"] == "Solidity 101"
        assert [s["id"] for s in learned["skills"]] == [1]


class TestLeaderboard:
    """Tests for GET /api/users/leaderboard/{kind}."""

    def test_reputation_ranking(self, seeded):
        seeded.post("/api/users", json={"address": "0xC", "username": "carol", "is_instructor": True})
        seeded.post("/api/sessions", json={"student": "0xB", "skill_id": 1})
        seeded.post("/api/sessions/1/complete", json={"assessment_score": 90, "rating": 500})

        data = seeded.get("/api/users/leaderboard/reputation").json()
        assert data["kind"] == "reputation"
        entries = data["entries"]
        assert entries[0]["username"] == "alice"
        assert entries[0]["score"] == "5"
        assert entries[0]["rank"] == 1
        # ties broken by username
        assert [e["username"] for e in entries[1:]] == ["bob", "carol"]

    def test_earnings_formatted(self, seeded):
        seeded.post("/api/sessions", json={"student": "0xB", "skill_id": 1})
        seeded.post("/api/sessions/1/complete", json={"assessment_score": 50, "rating": 300})
        entries = seeded.get("/api/users/leaderboard/earnings").json()["entries"]
        assert entries[0]["username"] == "alice"
        assert entries[0]["score"] == "100.0"
        assert entries[1]["score"] == "5.0"

    def test_limit(self, seeded):
        entries = seeded.get("/api/users/leaderboard/skills_taught?limit=1").json()["entries"]
        assert len(entries) == 1

    def test_unknown_kind(self, client):
        response = client.get("/api/users/leaderboard/popularity")
        assert response.status_code == 400
