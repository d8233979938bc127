import os
import tempfile

# Settings are read at import time; point them at a scratch location first.
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="tvsync-tests-")
os.environ["DATABASE_PATH"] = os.path.join(_TEST_DATA_DIR, "default.db")
os.environ["SYNC_SCHEDULE_ENABLED"] = "false"
os.environ["SYNC_ON_STARTUP"] = "false"

from collections.abc import Callable

import httpx
import pytest

from tvsync.database import close_db, init_db
from tvsync.services.sync_coordinator import SyncCoordinator
from tvsync.services.sync_service import SyncManager
from tvsync.services.sync_state import SyncStatePublisher
from tvsync.services.sync_types import CredentialPayload


SAMPLE_CHANNELS = [
    {
        "num": "1",
        "name": "News One",
        "stream_type": "live",
        "stream_id": "10",
        "stream_icon": "http://h/icons/news.png",
        "epg_channel_id": "news.one",
        "added": "1700000000",
        "custom_sid": None,
        "tv_archive": 1,
        "direct_source": "",
        "tv_archive_duration": "7",
        "category_id": "3",
        "category_ids": [3],
        "thumbnail": "",
    },
    {
        "num": 2,
        "name": "Sports Two",
        "stream_type": "live",
        "stream_id": 20,
        "category_id": 5,
        "category_ids": "5",
        "tv_archive": False,
    },
    {
        "num": 3,
        "name": "Mystery",
        "stream_type": "live",
        "stream_id": 30,
        "category_id": "",
    },
]

SAMPLE_CATEGORIES = [
    {"category_id": "3", "category_name": "News", "parent_id": 0},
    {"category_id": 5, "category_name": "Sports", "parent_id": "0"},
]


class FakeXtreamServer:
    """Serves player_api.php actions and the root URL through httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def serve(self, key: str, status_code: int = 200, **kwargs) -> None:
        """Register a response for an action name, or 'root' for GET /."""
        self.routes[key] = lambda request: httpx.Response(status_code, **kwargs)

    def serve_handler(self, key: str, handler) -> None:
        self.routes[key] = handler

    def fail(self, key: str, message: str = "Connection refused") -> None:
        def raise_error(request: httpx.Request):
            raise httpx.ConnectError(message, request=request)
        self.routes[key] = raise_error

    def _handle(self, request: httpx.Request):
        self.requests.append(request)
        if request.url.path.endswith("/player_api.php"):
            key = request.url.params.get("action", "")
        else:
            key = "root"
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404)
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


@pytest.fixture
def fake_server() -> FakeXtreamServer:
    return FakeXtreamServer()


@pytest.fixture
def credential() -> CredentialPayload:
    return CredentialPayload(server_url="http://h", username="u", password="p")


@pytest.fixture
async def database(tmp_path):
    await init_db(str(tmp_path / "tvsync.db"))
    yield
    await close_db()


@pytest.fixture
def publisher() -> SyncStatePublisher:
    return SyncStatePublisher()


@pytest.fixture
def coordinator() -> SyncCoordinator:
    coordinator = SyncCoordinator()
    coordinator.start()
    return coordinator


@pytest.fixture
def manager(coordinator, publisher, fake_server) -> SyncManager:
    return SyncManager(coordinator, publisher, transport=fake_server.transport)
