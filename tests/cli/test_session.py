"""Tests for the editor session command handlers."""

import asyncio
import json

import httpx
import pytest

from cli.credentials import CredentialProvider
from cli.editor import BufferEditor
from cli.session import NOTICE_TTL_SECONDS, EditorSession, NoticeLevel
from connectors.gh_cli import CredentialOutcome, CredentialStatus
from connectors.github import GistConnector


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_session(store, fake_source, clock):
    """Build a session against a given transport and credential outcome."""

    def make(transport, outcome=None, token="abc123"):
        provider = CredentialProvider(
            fake_source(outcome or CredentialOutcome.success("abc123")), store
        )
        if token:
            provider.set(token)
        notices = []
        session = EditorSession(
            provider,
            BufferEditor(),
            store,
            connector_factory=lambda credential: GistConnector(credential, transport=transport),
            clock=clock,
            on_notice=notices.append,
        )
        session.posted = notices
        return session

    return make


@pytest.mark.asyncio
class TestOpenAndSave:
    """Test the load -> edit -> save flow."""

    async def test_example_scenario(self, make_session, gist_api):
        """Test editing and saving notes.md sends one-file PATCH and adopts the response."""
        session = make_session(gist_api.transport)

        assert await session.on_open("g1", "notes.md")
        assert session.editor.get_value() == "# Hi"

        session.editor.set_value("# Hi there")
        assert await session.on_save()

        patch = gist_api.requests[-1]
        assert patch.method == "PATCH"
        assert json.loads(patch.content) == {"files": {"notes.md": {"content": "# Hi there"}}}
        assert session.state.gist.file("notes.md").content == "# Hi there"
        assert session.notice.message == "Gist saved successfully!"
        assert session.notice.level is NoticeLevel.SUCCESS

    async def test_state_replaced_by_server_response(self, make_session, sample_gist):
        """Test the saved gist is the server's version, not the local copy."""
        server_version = {**sample_gist, "description": "Renamed on server"}

        def handler(request):
            if request.method == "PATCH":
                return httpx.Response(200, json=server_version)
            return httpx.Response(200, json=sample_gist)

        session = make_session(httpx.MockTransport(handler))
        await session.on_open("g1", "notes.md")

        await session.on_save()

        assert session.state.gist.description == "Renamed on server"

    async def test_save_unmodified_round_trip(self, make_session, gist_api):
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")
        original = session.editor.get_value()

        await session.on_save()

        assert session.state.gist.file("notes.md").content == original

    async def test_save_without_open_gist(self, make_session, gist_api):
        """Test save fails immediately when nothing is open."""
        session = make_session(gist_api.transport)

        assert not await session.on_save()

        assert session.notice.message == "No gist loaded"
        assert session.notice.level is NoticeLevel.ERROR
        assert gist_api.requests == []

    async def test_save_with_file_missing_from_snapshot(self, make_session, gist_api):
        """Test save fails when the open file is not in the last-fetched gist."""
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")
        session.state.file_name = "gone.md"
        requests_before = len(gist_api.requests)

        assert not await session.on_save()

        assert session.notice.message == "No gist loaded"
        assert len(gist_api.requests) == requests_before

    async def test_open_missing_file_leaves_state(self, make_session, gist_api):
        """Test asking for an absent file reports it and keeps the previous state."""
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")
        session.editor.set_value("unsaved edit")

        assert not await session.on_open("g1", "other.md")

        assert session.notice.message == "File other.md not found in gist"
        assert session.state.file_name == "notes.md"
        assert session.editor.get_value() == "unsaved edit"

    async def test_open_404_leaves_state(self, make_session, gist_api):
        """Test a failed fetch surfaces the status text and changes nothing."""
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")
        before = session.state.gist

        assert not await session.on_open("missing", "notes.md")

        assert "Not Found" in session.notice.message
        assert session.notice.level is NoticeLevel.ERROR
        assert session.state.gist is before
        assert session.state.file_name == "notes.md"

    async def test_failed_save_keeps_state(self, make_session, gist_api):
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")
        before = session.state.gist
        gist_api.fail_status = 409

        assert not await session.on_save()

        assert session.notice.message == "Failed to save gist: Conflict"
        assert session.state.gist is before
        assert not session.saving

    async def test_overlapping_save_rejected(self, make_session, sample_gist):
        """Test a second save while one is in flight is refused without a request."""
        release = asyncio.Event()
        patches = []

        async def handler(request):
            if request.method == "PATCH":
                patches.append(request)
                await release.wait()
            return httpx.Response(200, json=sample_gist)

        session = make_session(httpx.MockTransport(handler))
        await session.on_open("g1", "notes.md")

        first = asyncio.create_task(session.on_save())
        await asyncio.sleep(0.01)
        second = await session.on_save()
        release.set()

        assert second is False
        assert session.posted[-1].message == "Save already in progress"
        assert await first is True
        assert len(patches) == 1

    async def test_close_during_save_does_not_reopen(self, make_session, sample_gist):
        """Test closing while a save is in flight does not abort it or reopen the gist."""
        release = asyncio.Event()

        async def handler(request):
            if request.method == "PATCH":
                await release.wait()
            return httpx.Response(200, json=sample_gist)

        session = make_session(httpx.MockTransport(handler))
        await session.on_open("g1", "notes.md")

        save = asyncio.create_task(session.on_save())
        await asyncio.sleep(0.01)
        session.on_close()
        release.set()

        assert await save is True
        assert session.state.gist is None
        assert session.state.file_name is None

    async def test_open_non_json_body_leaves_state(self, make_session, gist_api):
        """Test a 200 HTML page instead of a gist is reported and changes nothing."""
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")
        before = session.state.gist
        portal = httpx.MockTransport(lambda r: httpx.Response(200, text="<html>portal</html>"))
        session.connector_factory = lambda credential: GistConnector(credential, transport=portal)

        assert not await session.on_open("g2", "notes.md")

        assert session.notice.message == "Failed to load gist: Invalid response from GitHub"
        assert session.notice.level is NoticeLevel.ERROR
        assert session.state.gist is before
        assert session.editor.get_value() == "# Hi"

    async def test_save_invalid_body_keeps_state(self, make_session, sample_gist):
        def handler(request):
            if request.method == "PATCH":
                return httpx.Response(200, json={"unexpected": True})
            return httpx.Response(200, json=sample_gist)

        session = make_session(httpx.MockTransport(handler))
        await session.on_open("g1", "notes.md")
        before = session.state.gist

        assert not await session.on_save()

        assert "Invalid response from GitHub" in session.notice.message
        assert session.state.gist is before
        assert not session.saving

    async def test_truncated_file_is_not_opened(self, make_session, sample_gist):
        """Test a truncated file cannot be opened, so it can never be saved back."""
        big = {
            **sample_gist,
            "files": {"big.md": {"filename": "big.md", "content": "partial", "truncated": True}},
        }
        patches = []

        def handler(request):
            if request.method == "PATCH":
                patches.append(request)
            return httpx.Response(200, json=big)

        session = make_session(httpx.MockTransport(handler))

        assert not await session.on_open("g1", "big.md")
        assert not await session.on_save()

        assert "too large" in session.posted[-2].message
        assert session.posted[-1].message == "No gist loaded"
        assert not session.state.is_open
        assert session.editor.get_value() == ""
        assert patches == []

    async def test_close_resets(self, make_session, gist_api):
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")

        session.on_close()

        assert not session.state.is_open
        assert session.editor.get_value() == ""


@pytest.mark.asyncio
class TestListGists:
    """Test listing gists."""

    async def test_lists_gists(self, make_session, gist_api):
        session = make_session(gist_api.transport)

        gists = await session.on_list_gists()

        assert [g.id for g in gists] == ["g1"]
        assert session.notice.message == "Loaded 1 gist"

    async def test_empty_is_distinct_from_error(self, make_session):
        """Test no gists yields an info notice and an empty list."""
        session = make_session(httpx.MockTransport(lambda r: httpx.Response(200, json=[])))

        gists = await session.on_list_gists()

        assert gists == []
        assert session.notice.message == "No gists found"
        assert session.notice.level is NoticeLevel.INFO

    async def test_listing_kept_on_session(self, make_session, gist_api):
        session = make_session(gist_api.transport)
        assert session.listing == []

        await session.on_list_gists()

        assert [g.id for g in session.listing] == ["g1"]

    async def test_non_json_body(self, make_session):
        session = make_session(
            httpx.MockTransport(lambda r: httpx.Response(200, text="<html>portal</html>"))
        )

        assert await session.on_list_gists() is None

        assert session.notice.message == "Failed to load gists: Invalid response from GitHub"
        assert session.notice.level is NoticeLevel.ERROR
        assert session.listing == []

    async def test_remote_error(self, make_session, gist_api):
        gist_api.fail_status = 401
        session = make_session(gist_api.transport)

        assert await session.on_list_gists() is None

        assert session.notice.message == "Failed to load gists: Unauthorized"

    async def test_requires_credential(self, make_session, gist_api):
        """Test listing without a credential makes no request."""
        session = make_session(gist_api.transport, token=None)

        assert await session.on_list_gists() is None

        assert session.notice.message == "Please set your GitHub token first"
        assert gist_api.requests == []

    async def test_open_requires_credential(self, make_session, gist_api):
        session = make_session(gist_api.transport, token=None)

        assert not await session.on_open("g1", "notes.md")

        assert "Missing GitHub token" in session.notice.message
        assert gist_api.requests == []


@pytest.mark.asyncio
class TestCredentialHandlers:
    """Test credential command handlers."""

    async def test_refresh_success(self, make_session, gist_api):
        session = make_session(gist_api.transport, token=None)

        outcome = await session.on_refresh_credential()

        assert outcome.ok
        assert session.provider.credential == "abc123"
        assert session.notice.message == "Authenticated via GitHub CLI"

    async def test_refresh_failure_asks_for_manual_entry(self, make_session, gist_api):
        failure = CredentialOutcome.failure(CredentialStatus.TOOL_MISSING, "gh is not installed.")
        session = make_session(gist_api.transport, outcome=failure, token=None)

        outcome = await session.on_refresh_credential()

        assert outcome.status is CredentialStatus.TOOL_MISSING
        assert session.notice.level is NoticeLevel.ERROR
        assert "enter token manually" in session.notice.message

    async def test_refresh_falls_back_to_stored_token_silently(self, make_session, gist_api):
        """Test using the stored token after a helper failure posts no notice."""
        failure = CredentialOutcome.failure(CredentialStatus.NOT_AUTHENTICATED, "not logged in")
        session = make_session(gist_api.transport, outcome=failure, token="stored-token")

        outcome = await session.on_refresh_credential()

        assert outcome.ok
        assert outcome.from_storage
        assert session.provider.credential == "stored-token"
        assert session.posted == []
        assert session.notice is None

    async def test_set_credential(self, make_session, gist_api):
        session = make_session(gist_api.transport, token=None)

        assert session.on_set_credential("manual")
        assert not session.on_set_credential("   ")

        assert session.provider.credential == "manual"
        assert session.notice.message == "Please enter a valid token"

    async def test_logout(self, make_session, gist_api, store):
        session = make_session(gist_api.transport)
        await session.on_open("g1", "notes.md")

        session.on_logout()

        assert session.provider.credential is None
        assert store.load_token() is None
        assert not session.state.is_open


class TestNoticesAndTheme:
    """Test transient notices and the theme preference."""

    def test_notice_expires(self, make_session, gist_api, clock):
        session = make_session(httpx.MockTransport(lambda r: httpx.Response(200)))
        session.notify("hello")

        clock.now += NOTICE_TTL_SECONDS - 0.1
        assert session.notice.message == "hello"

        clock.now += 0.2
        assert session.notice is None

    def test_toggle_theme(self, make_session, store):
        session = make_session(httpx.MockTransport(lambda r: httpx.Response(200)))

        assert session.on_toggle_theme() == "dark"
        assert store.load_theme() == "dark"
        assert session.on_toggle_theme() == "light"
        assert store.load_theme() == "light"
