"""Tests for skill endpoints (F4)."""

import pytest

from learnplatform.core.state_store import get_state_path


def _skill(client, title, category, instructor="0xA", price="10", description=""):
    return client.post(
        "/api/skills",
        json={
            "instructor": instructor,
            "title": title,
            "description": description,
            "category": category,
            "price": price,
        },
    )


class TestCreateSkill:
    """Tests for POST /api/skills."""

    def test_created(self, seeded):
        skill = seeded.get("/api/skills/1").json()
        assert skill["title"] == "Solidity 101"
        assert skill["price"] == "100.0"
        assert skill["is_active"] is True
        assert skill["average_rating"] == 0
        assert skill["total_students"] == 0

    def test_fractional_price(self, seeded):
        response = _skill(seeded, "Micro", "Misc", price="0.25")
        assert response.status_code == 201
        assert response.json()["price"] == "0.25"

    def test_zero_price(self, seeded):
        response = _skill(seeded, "Free", "Misc", price="0")
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidPrice"

    def test_unparseable_price(self, seeded):
        response = _skill(seeded, "Odd", "Misc", price="ten")
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidAmount"

    @pytest.mark.parametrize("price", ["1e5000", "1e999999"])
    def test_oversized_price(self, seeded, workdir, price):
        """An out-of-range price is rejected and the service keeps working."""
        response = _skill(seeded, "Huge", "Misc", price=price)
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidAmount"
        assert seeded.get("/api/skills").json()["count"] == 1
        new_user = seeded.post("/api/users", json={"address": "0xD", "username": "dave"})
        assert new_user.status_code == 201
        assert not get_state_path(workdir / "data").with_suffix(".json.tmp").exists()

    def test_student_cannot_create(self, seeded):
        response = _skill(seeded, "Mine", "Misc", instructor="0xB")
        assert response.status_code == 403
        assert response.json()["error"] == "NotInstructor"

    def test_unregistered_instructor(self, seeded):
        response = _skill(seeded, "Ghost", "Misc", instructor="0xZ")
        assert response.status_code == 404
        assert response.json()["field"] == "instructor"

    def test_unknown_skill(self, client):
        response = client.get("/api/skills/77")
        assert response.status_code == 404
        assert response.json()["error"] == "SkillNotFound"


class TestListSkills:
    """Tests for listing and filtering."""

    def test_filters(self, seeded):
        _skill(seeded, "Figma basics", "Design", description="Interface design")
        _skill(seeded, "Rust", "Programming", description="Ownership and borrowing")

        assert seeded.get("/api/skills").json()["count"] == 3
        by_category = seeded.get("/api/skills", params={"category": "Design"}).json()
        assert [s["title"] for s in by_category["skills"]] == ["Figma basics"]
        search = seeded.get("/api/skills", params={"search": "BORROW"}).json()
        assert [s["title"] for s in search["skills"]] == ["Rust"]
        by_instructor = seeded.get("/api/skills", params={"instructor": "0xa"}).json()
        assert by_instructor["count"] == 3

    def test_category_endpoint_in_creation_order(self, seeded):
        _skill(seeded, "Figma basics", "Design")
        _skill(seeded, "Rust", "Programming")
        data = seeded.get("/api/skills/category/Programming").json()
        assert [s["id"] for s in data["skills"]] == [1, 3]

    def test_empty_category(self, seeded):
        data = seeded.get("/api/skills/category/Cooking").json()
        assert data == {"skills": [], "count": 0}


class TestSkillStatus:
    """Tests for PATCH /api/skills/{id}/status."""

    def test_deactivate(self, seeded):
        response = seeded.patch("/api/skills/1/status", json={"by": "0xA", "is_active": False})
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert seeded.get("/api/skills").json()["count"] == 0
        assert seeded.get("/api/skills/category/Programming").json()["count"] == 1

    def test_enrolment_blocked_when_inactive(self, seeded):
        seeded.patch("/api/skills/1/status", json={"by": "0xA", "is_active": False})
        response = seeded.post("/api/sessions", json={"student": "0xB", "skill_id": 1})
        assert response.status_code == 400
        assert response.json()["error"] == "SkillInactive"

    def test_other_user_forbidden(self, seeded):
        response = seeded.patch("/api/skills/1/status", json={"by": "0xB", "is_active": False})
        assert response.status_code == 403
        assert response.json()["error"] == "Unauthorized"
