"""Health Probes — liveness always up, readiness follows the database."""

import app.infrastructure.database as database


async def test_liveness(client):
    res = await client.get("/api/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(database, "db_manager", None)
    res = await client.get("/api/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"


async def test_readiness_with_healthy_database(client, monkeypatch):
    class _HealthyManager:
        async def health_check(self):
            return True

    monkeypatch.setattr(database, "db_manager", _HealthyManager())
    res = await client.get("/api/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"] == {"database": "healthy"}
