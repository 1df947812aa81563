from commerce.infrastructure.db import get_engine
from shared.core import HealthStatus, ServiceHealth


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["service"] == "commerce-service"


def test_health_and_liveness(client):
    assert client.get("/health").json()["status"] == "pass"
    assert client.get("/health/live").json() == {"status": "alive"}


def test_request_id_is_echoed(client):
    resp = client.get("/health/live", headers={"X-Request-ID": "req-42"})
    assert resp.headers["X-Request-ID"] == "req-42"
    assert client.get("/health/live").headers["X-Request-ID"]


def test_readiness_reports_database(client):
    resp = client.get("/health/ready")
    assert resp.status_code in (200, 503)
    assert resp.json()["checks"]["database:connectivity"]["status"] == "pass"


def test_database_failure_marks_service_unready():
    def broken_engine():
        raise RuntimeError("connection refused")

    health = ServiceHealth("commerce-service", broken_engine)
    checks = health.perform_readiness_checks()

    assert checks["database:connectivity"]["status"] == HealthStatus.FAIL
    assert health.calculate_overall_status(checks) == HealthStatus.FAIL


def test_unreachable_redis_only_warns():
    health = ServiceHealth("commerce-service", get_engine, redis_url="redis://127.0.0.1:1/0")
    checks = health.perform_readiness_checks()
    assert checks["cache:connectivity"]["status"] == HealthStatus.WARN


def test_overall_status_precedence():
    pass_check = {"status": HealthStatus.PASS}
    warn_check = {"status": HealthStatus.WARN}
    fail_check = {"status": HealthStatus.FAIL}
    assert ServiceHealth.calculate_overall_status({"a": pass_check}) == HealthStatus.PASS
    assert ServiceHealth.calculate_overall_status({"a": pass_check, "b": warn_check}) == HealthStatus.WARN
    assert ServiceHealth.calculate_overall_status({"a": warn_check, "b": fail_check}) == HealthStatus.FAIL


def test_metrics(client):
    body = client.get("/metrics").json()
    assert body["service"] == "commerce-service"
    assert body["system"]["memory_rss_bytes"] > 0
