"""Shared fixtures for Web API tests (F4)."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from learnplatform.config.app_config import clear_config_cache
from learnplatform.web.api import create_app
from learnplatform.web.platform import reset_platform

TEST_CONFIG = """\
faucet:
  enabled: true
  max_amount: "1000"
"""


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Empty project directory with a faucet-enabled config."""
    monkeypatch.chdir(tmp_path)
    config_path = Path("data/config/app_config_v1.yaml")
    config_path.parent.mkdir(parents=True)
    config_path.write_text(TEST_CONFIG, encoding="utf-8")
    clear_config_cache()
    reset_platform()
    yield tmp_path
    reset_platform()
    clear_config_cache()


@pytest.fixture
def client(workdir):
    """Test client over a fresh platform."""
    return TestClient(create_app())


@pytest.fixture
def seeded(client):
    """Instructor 0xA, student 0xB with 150 tokens, skill 1 priced 100."""
    client.post("/api/users", json={"address": "0xA", "username": "alice", "is_instructor": True})
    client.post("/api/users", json={"address": "0xB", "username": "bob"})
    client.post("/api/tokens/faucet", json={"address": "0xB", "amount": "150"})
    response = client.post(
        "/api/skills",
        json={
            "instructor": "0xA",
            "title": "Solidity 101",
            "description": "Smart contracts from scratch",
            "category": "Programming",
            "duration": 60,
            "price": "100",
        },
    )
    assert response.status_code == 201
    return client
