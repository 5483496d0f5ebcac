import json

from scanlog.visits import VisitLogger, capture_request, resolve_client_ip


def test_log_visit_defaults(store):
    visits = VisitLogger(store)
    created_at = visits.log_visit(ip="198.51.100.4")

    [row] = store.list_all()
    assert row["created_at"] == created_at
    assert created_at.endswith("+00:00")
    assert row["headers"] == "{}"
    assert row["user_agent"] == ""
    assert row["fp_data"] is None
    assert row["ip_raw"] is None
    assert row["x_forwarded_for"] is None


def test_log_visit_keeps_supplied_timestamp(store):
    VisitLogger(store).log_visit(created_at="2024-05-01T12:00:00.000Z")
    assert store.list_all()[0]["created_at"] == "2024-05-01T12:00:00.000Z"


def test_fingerprint_serialized_only_when_present(store):
    visits = VisitLogger(store)
    visits.log_visit(fp_data={})
    visits.log_visit(fp_data={"timezone": "Europe/Madrid", "languages": ["es-ES", "en"]})

    newest, oldest = store.list_all()
    assert oldest["fp_data"] == "{}"
    assert json.loads(newest["fp_data"]) == {
        "timezone": "Europe/Madrid",
        "languages": ["es-ES", "en"],
    }


def test_resolve_client_ip_prefers_forwarded_for(app):
    with app.test_request_context(
        "/scan",
        headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.2"},
        environ_base={"REMOTE_ADDR": "10.0.0.1"},
    ):
        from flask import request

        assert resolve_client_ip(request) == "203.0.113.9"


def test_capture_request_without_proxy(app):
    with app.test_request_context(
        "/scan",
        headers={"User-Agent": "Mozilla/5.0 (iPhone)"},
        environ_base={"REMOTE_ADDR": "192.0.2.33"},
    ):
        from flask import request

        ctx = capture_request(request)

    assert ctx.ip == "192.0.2.33"
    assert ctx.ip_raw == "192.0.2.33"
    assert ctx.x_forwarded_for is None
    assert ctx.user_agent == "Mozilla/5.0 (iPhone)"
    assert ctx.headers["user-agent"] == "Mozilla/5.0 (iPhone)"


def test_capture_request_missing_user_agent(app):
    with app.test_request_context("/scan", environ_base={"REMOTE_ADDR": "192.0.2.1"}):
        from flask import request

        ctx = capture_request(request)

    assert ctx.user_agent == ""
    assert all(k == k.lower() for k in ctx.headers)
