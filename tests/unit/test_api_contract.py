import pytest
from fastapi.testclient import TestClient

import main
from repo_analyzer.models import FetchError
from repo_analyzer.operations import OperationLifecycleManager


REPO = "https://github.com/acme/widgets"


class FakeAnalysisService:
    def __init__(self):
        self.calls = []

    def work_for(self, repo_url, branch):
        def work(token, progress):
            self.calls.append((repo_url, branch))
            progress("Cloning repository...")
            if repo_url.endswith("missing"):
                raise FetchError("Git clone failed: repository not found")
            return f"# Repository Analysis: {repo_url} (branch: {branch})"

        return work


@pytest.fixture
def service():
    return FakeAnalysisService()


@pytest.fixture
def client(service):
    app = main.create_app(analysis_service=service, manager=OperationLifecycleManager(sync_timeout=5, max_workers=1))
    with TestClient(app) as test_client:
        yield test_client


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_analyze_then_status_returns_cached_report(client, service):
    analyzed = client.post("/analyze", json={"repo_url": REPO})

    assert analyzed.status_code == 200
    assert analyzed.json() == {"status": "completed", "text": f"# Repository Analysis: {REPO} (branch: main)"}

    status = client.post("/status", json={"repo_url": REPO + ".git", "branch": "main"})
    assert status.json()["status"] == "completed"

    again = client.post("/analyze", json={"repo_url": REPO, "branch": None})
    assert again.json()["status"] == "completed"
    assert service.calls == [(REPO, "main")]


def test_status_before_analysis(client):
    response = client.post("/status", json={"repo_url": REPO, "branch": "dev"})

    assert response.status_code == 200
    assert response.json()["status"] == "not_found"


@pytest.mark.parametrize("payload", [{}, {"repo_url": "   "}, {"branch": "main"}])
def test_invalid_payload_uses_error_envelope(client, payload):
    response = client.post("/analyze", json=payload)

    assert response.status_code == 422
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["message"] == "Invalid request payload."
    assert isinstance(body["error"]["details"]["errors"], list)


def test_fetch_failure_is_reported_as_error_status(client):
    response = client.post("/analyze", json={"repo_url": "https://github.com/acme/missing"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "error"
    assert payload["message"] == "Error analyzing repository: Git clone failed: repository not found"

    status = client.post("/status", json={"repo_url": "https://github.com/acme/missing"})
    assert status.json()["message"] == "Analysis failed: Git clone failed: repository not found"


def test_cancel_with_clear_cache(client):
    client.post("/analyze", json={"repo_url": REPO})

    cancelled = client.post("/cancel", json={"repo_url": REPO, "clear_cache": True})

    assert cancelled.status_code == 200
    assert cancelled.json() == {
        "message": f"No running analysis found, but cleared cached results for repository: {REPO} (branch: main)"
    }
    assert client.post("/status", json={"repo_url": REPO}).json()["status"] == "not_found"


def test_operations_listing(client):
    client.post("/analyze", json={"repo_url": REPO})
    client.post("/analyze", json={"repo_url": "https://github.com/acme/missing"})

    listing = {item["key"]: item["state"] for item in client.get("/operations").json()}

    assert listing == {f"{REPO}:main": "completed", "https://github.com/acme/missing:main": "failed"}
