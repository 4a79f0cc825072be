"""Pytest configuration and shared fixtures."""

import json
import os
import stat

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("OTEL_TRACES_EXPORTER", "none")
os.environ.setdefault("OTEL_METRICS_EXPORTER", "none")
os.environ.setdefault("OTEL_LOG_LEVEL", "WARNING")


class FakeCredentialSource:
    """Credential source returning a fixed outcome and counting calls."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        return self.outcome


class FakeGistApi:
    """In-memory stand-in for the GitHub gist endpoints, served via MockTransport."""

    def __init__(self, gists=None):
        self.gists = {g["id"]: g for g in (gists or [])}
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status)

        parts = request.url.path.strip("/").split("/")
        if parts == ["gists"] and request.method == "GET":
            summaries = [
                {
                    **g,
                    "files": {
                        name: {"filename": name, "language": f.get("language")}
                        for name, f in g["files"].items()
                    },
                }
                for g in self.gists.values()
            ]
            return httpx.Response(200, json=summaries)

        if len(parts) == 2 and parts[0] == "gists":
            gist = self.gists.get(parts[1])
            if gist is None:
                return httpx.Response(404, json={"message": "Not Found"})
            if request.method == "PATCH":
                body = json.loads(request.content)
                for name, update in body["files"].items():
                    gist["files"].setdefault(name, {"filename": name})["content"] = update["content"]
            return httpx.Response(200, json=gist)

        return httpx.Response(404, json={"message": "Not Found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def sample_gist():
    """Gist with a single markdown file."""
    return {
        "id": "g1",
        "description": "My notes",
        "created_at": "2024-05-01T12:00:00Z",
        "files": {"notes.md": {"filename": "notes.md", "language": "Markdown", "content": "# Hi"}},
    }


@pytest.fixture
def gist_api(sample_gist):
    return FakeGistApi([sample_gist])


@pytest.fixture
def store(tmp_path):
    from cli.config import ClientStore

    return ClientStore(tmp_path / "home")


@pytest.fixture
def fake_gh(tmp_path):
    """Factory writing an executable shell script that stands in for ``gh``."""

    def make(stdout: str = "", stderr: str = "", exit_code: int = 0) -> str:
        script = tmp_path / "gh"
        script.write_text(
            "#!/bin/sh\n"
            f"printf '%b' '{stdout}'\n"
            f"printf '%b' '{stderr}' >&2\n"
            f"exit {exit_code}\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IEXEC)
        return str(script)

    return make


@pytest.fixture
def api_client(tmp_path):
    """FastAPI test client fixture with lifespan context."""
    from api.app import create_app

    app = create_app(static_dir=tmp_path / "no-static")
    with TestClient(app) as client:
        yield client


@pytest.fixture
def fake_source():
    """Factory for credential sources that return a fixed outcome."""
    return FakeCredentialSource
