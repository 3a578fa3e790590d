from restoflow.audit_events import list_audit_events


def test_unknown_route_is_problem_json(client):
    rv = client.get("/nope", headers={"X-Request-Id": "req-42"})
    assert rv.status_code == 404
    assert rv.mimetype == "application/problem+json"
    body = rv.get_json()
    assert body["status"] == 404
    assert body["title"] == "Not Found"
    assert body["type"].endswith("/not_found")
    assert body["request_id"] == "req-42"
    assert rv.headers["X-Request-Id"] == "req-42"


def test_request_id_generated_when_absent(client):
    rv = client.get("/")
    assert rv.headers["X-Request-Id"]
    assert int(rv.headers["X-Request-Duration-ms"]) >= 0


def test_session_error_is_401_and_audited(client):
    rv = client.get("/dashboard")
    assert rv.status_code == 401
    assert rv.get_json()["type"].endswith("/unauthorized")
    problems = list_audit_events("problem_response")
    assert problems[-1]["meta"]["status"] == 401
    assert problems[-1]["meta"]["path"] == "/dashboard"


def test_method_not_allowed_is_problem_json(client):
    rv = client.delete("/register")
    assert rv.status_code == 405
    assert rv.mimetype == "application/problem+json"


def test_warnings_land_in_support_buffer(client):
    from restoflow.logging_setup import LOG_BUFFER

    client.post("/broadcasting-custom-auth", json={}, headers={"X-Request-Id": "rid-9"})
    assert any(
        e["request_id"] == "rid-9" and e["path"] == "/broadcasting-custom-auth" and "no authenticated user" in e["msg"]
        for e in LOG_BUFFER
    )
