"""End-to-end tests for the HTTP transport."""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sublinear import BANNER, create_app
from sublinear.core.config import AppSettings, get_settings
from sublinear.db.session import get_db, make_engine, make_sessionmaker

API_KEY = "sekret"
AUTH = {"Authorization": f"Bearer {API_KEY}"}


def _serve(**overrides):
    engine = make_engine("sqlite://")
    settings = AppSettings(_env_file=None, REQUIRE_AUTH=True, BASE_URL="http://test.local", **overrides)
    app = create_app(settings, engine)
    TestingSessionLocal = make_sessionmaker(engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    engine.dispose()


@pytest.fixture()
def client():
    yield from _serve(API_KEY=API_KEY)


@pytest.fixture()
def keyless_client():
    yield from _serve()


def call(client, operation, variables=None, headers=AUTH, **extra):
    body = {"operation": operation, "variables": variables or {}, **extra}
    response = client.post("/graphql", json=body, headers=headers)
    assert response.status_code == 200
    return response.json()


def test_banner_and_health(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.text == BANNER
    assert "NOT FOR PRODUCTION USE" in root.text
    assert client.get("/healthz").text == "ok"


def test_request_id_is_echoed(client):
    response = client.get("/healthz", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.parametrize("headers", [{}, {"Authorization": ""}, {"Authorization": "Bearer nope"}])
def test_rejected_credentials_yield_unauthorized(client, headers):
    body = call(client, "viewer", headers=headers)
    assert body["data"] is None
    assert body["errors"] == [{"message": "Unauthorized", "extensions": {"code": "unauthorized"}}]


def test_raw_key_and_bearer_key_are_accepted(client):
    for headers in (AUTH, {"Authorization": API_KEY}):
        body = call(client, "viewer", headers=headers)
        assert body["data"]["viewer"] == {
            "id": "viewer_default",
            "name": "Sublinear Dev",
            "email": "sublinear@example.com",
        }


def test_issue_lifecycle_over_http(client):
    created = call(client, "issueCreate", {"input": {"teamId": "team_default", "title": "Ship it"}}, type="mutation")
    payload = created["data"]["issueCreate"]
    assert payload["success"] is True
    issue = payload["issue"]
    assert issue["identifier"] == "SYN-1"
    assert issue["url"] == "http://test.local/issue/SYN-1"
    assert issue["state"]["name"] == "Backlog"
    assert "createdAt" in issue and "updatedAt" in issue

    labelled = call(client, "issueAddLabel", {"id": issue["id"], "labelId": "bug"})
    assert labelled["data"]["issueAddLabel"] == {"success": True}
    call(client, "commentCreate", {"input": {"issueId": issue["id"], "body": "on it"}})

    listed = call(
        client,
        "issues",
        {"filter": {"team": {"key": {"eq": "SYN"}}}, "first": 10, "orderBy": "updatedAt"},
        expand=["labels", "comments", "team"],
    )
    node = listed["data"]["issues"]["nodes"][0]
    assert node["labels"] == {"nodes": [{"id": "bug", "name": "bug"}]}
    assert [comment["body"] for comment in node["comments"]["nodes"]] == ["on it"]
    assert node["team"]["key"] == "SYN"

    archived = call(client, "issueArchive", {"id": issue["id"]})
    assert archived["data"]["issueArchive"] == {"success": True}
    assert call(client, "issues")["data"]["issues"] == {"nodes": []}
    assert call(client, "issue", {"id": issue["id"]})["data"]["issue"]["archived"] is True


def test_project_create_and_workflow_states(client):
    created = call(client, "projectCreate", {"input": {"teamIds": ["team_default"], "name": "Q3 Goals"}})
    project = created["data"]["projectCreate"]["project"]
    assert project["slugId"] == "q3-goals"
    assert project["state"] == "planned"

    fetched = call(client, "project", {"id": project["id"]}, expand=["teams"])
    assert [team["id"] for team in fetched["data"]["project"]["teams"]["nodes"]] == ["team_default"]

    states = call(client, "workflowStates", {"filter": {"team": {"key": {"eq": "SYN"}}}})
    assert [s["name"] for s in states["data"]["workflowStates"]["nodes"]] == [
        "Backlog",
        "In Progress",
        "In Review",
        "Done",
        "Canceled",
    ]


def test_domain_errors_use_the_errors_envelope(client):
    missing = call(client, "project", {"id": "project_missing"})
    assert missing["errors"][0] == {"message": "Entity not found: Project", "extensions": {"code": "not_found"}}

    empty = call(client, "projectCreate", {"input": {"teamIds": [], "name": "x"}})
    assert empty["errors"][0]["message"] == "teamIds must contain at least one team id"
    assert empty["errors"][0]["extensions"]["code"] == "validation_error"
    assert call(client, "projects")["data"]["projects"] == {"nodes": []}

    assert call(client, "team", {"id": "team_missing"})["data"] == {"team": None}


def test_dispatch_errors(client):
    unknown = call(client, "issuesDelete")
    assert unknown["errors"][0]["extensions"]["code"] == "validation_error"

    wrong_kind = call(client, "issueCreate", {"input": {"teamId": "team_default", "title": "x"}}, type="query")
    assert wrong_kind["errors"][0]["extensions"]["code"] == "validation_error"

    bad_args = call(client, "issue", {})
    assert bad_args["errors"][0]["extensions"]["code"] == "validation_error"

    bad_expand = call(client, "viewer", expand=["labels"])
    assert bad_expand["errors"][0]["extensions"]["code"] == "validation_error"


def test_malformed_request_body_is_rejected(client):
    response = client.post("/graphql", json={"variables": {}}, headers=AUTH)
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


UNAUTHORIZED = [{"message": "Unauthorized", "extensions": {"code": "unauthorized"}}]


@pytest.mark.parametrize("headers", [{"Authorization": b"\xff\xfe"}, {"Authorization": b"Bearer \xe9t\xe9"}])
def test_keyless_gate_rejects_non_ascii_credentials(keyless_client, headers):
    body = call(keyless_client, "viewer", headers=headers)
    assert body == {"data": None, "errors": UNAUTHORIZED}


def test_keyless_gate_accepts_any_ascii_credential(keyless_client):
    body = call(keyless_client, "viewer", headers={"Authorization": "lin_api_anything"})
    assert body["data"]["viewer"]["id"] == "viewer_default"


@pytest.mark.parametrize(
    "operation, variables, extra",
    [
        ("issuesDelete", {}, {}),
        ("issue", {}, {}),
        ("issueCreate", {"input": {"teamId": "team_default", "title": "x"}}, {"type": "query"}),
    ],
)
def test_unauthorized_callers_learn_nothing_about_dispatch(client, operation, variables, extra):
    body = call(client, operation, variables, headers={}, **extra)
    assert body == {"data": None, "errors": UNAUTHORIZED}


def test_out_of_range_number_filter_is_a_validation_error(client):
    body = call(client, "issues", {"filter": {"number": {"in": [1e300]}}})
    assert body["data"] is None
    assert body["errors"][0]["extensions"]["code"] == "validation_error"
    assert "filter.number.in" in body["errors"][0]["message"]


def test_graphql_route_only_accepts_post(client):
    assert client.get("/graphql", headers=AUTH).status_code == 405
