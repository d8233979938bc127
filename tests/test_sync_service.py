import asyncio

import httpx

from tvsync.database import session_scope
from tvsync.services.credential_service import add_credential
from tvsync.services.db_service import count_records, list_categories, list_channels
from tvsync.services.sync_types import CredentialPayload, SyncKind

from conftest import SAMPLE_CATEGORIES, SAMPLE_CHANNELS


async def _stored_channel_names() -> list[str]:
    async with session_scope() as session:
        return [channel.name for channel in await list_channels(session)]


async def test_sync_channels_concrete_scenario(database, manager, fake_server, credential):
    fake_server.serve("get_live_streams", json=[{"num": "1", "name": "A", "stream_id": "10"}])

    result = await manager.sync(SyncKind.CHANNELS, credential)

    assert result.status == "success"
    assert result.count == 1
    async with session_scope() as session:
        channels = await list_channels(session)
    assert len(channels) == 1
    assert (channels[0].num, channels[0].stream_id, channels[0].name) == (1, 10, "A")


async def test_sync_replaces_previous_set(database, manager, fake_server, credential):
    fake_server.serve("get_live_streams", json=SAMPLE_CHANNELS)
    await manager.sync(SyncKind.CHANNELS, credential)

    fake_server.serve("get_live_streams", json=[{"name": "Fresh", "stream_id": 99}])
    result = await manager.sync(SyncKind.CHANNELS, credential)

    assert result.count == 1
    assert await _stored_channel_names() == ["Fresh"]
    state = manager.publisher.snapshot(SyncKind.CHANNELS)
    assert state.count == 1
    assert [record.name for record in state.records] == ["Fresh"]


async def test_sync_preserves_order_received(database, manager, fake_server, credential):
    fake_server.serve("get_live_streams", json={"streams": SAMPLE_CHANNELS})

    await manager.sync(SyncKind.CHANNELS, credential)

    assert await _stored_channel_names() == ["News One", "Sports Two", "Mystery"]


async def test_decode_failure_keeps_previous_set(database, manager, fake_server, credential):
    fake_server.serve("get_live_streams", json=SAMPLE_CHANNELS)
    await manager.sync(SyncKind.CHANNELS, credential)

    fake_server.serve("get_live_streams", json=[{"num": 1}])
    result = await manager.sync(SyncKind.CHANNELS, credential)

    assert result.status == "failed"
    assert result.error_code == "DECODE_ERROR"
    assert len(await _stored_channel_names()) == len(SAMPLE_CHANNELS)

    state = manager.publisher.snapshot(SyncKind.CHANNELS)
    assert state.is_loading is False
    assert state.error_code == "DECODE_ERROR"
    assert state.count == len(SAMPLE_CHANNELS)
    assert state.response_type == "Array"


async def test_server_error_is_published(database, manager, fake_server, credential):
    fake_server.serve("get_live_categories", status_code=500)

    result = await manager.sync(SyncKind.CATEGORIES, credential)

    assert result.status == "failed"
    assert result.error_code == "SERVER_ERROR"
    state = manager.publisher.snapshot(SyncKind.CATEGORIES)
    assert "500" in state.last_error


async def test_invalid_url_fails_without_request(database, manager, fake_server):
    result = await manager.sync(
        SyncKind.CHANNELS,
        CredentialPayload(server_url="", username="u", password="p"),
    )

    assert result.status == "failed"
    assert result.error_code == "INVALID_URL"
    assert fake_server.requests == []


async def test_network_and_empty_errors(database, manager, fake_server, credential):
    fake_server.fail("get_live_streams")
    fake_server.serve("get_live_categories", content=b"")

    channels = await manager.sync(SyncKind.CHANNELS, credential)
    categories = await manager.sync(SyncKind.CATEGORIES, credential)

    assert channels.error_code == "NETWORK_ERROR"
    assert categories.error_code == "EMPTY_RESPONSE"


async def test_success_clears_previous_error(database, manager, fake_server, credential):
    fake_server.serve("get_live_categories", status_code=502)
    await manager.sync(SyncKind.CATEGORIES, credential)

    fake_server.serve("get_live_categories", json=SAMPLE_CATEGORIES)
    await manager.sync(SyncKind.CATEGORIES, credential)

    state = manager.publisher.snapshot(SyncKind.CATEGORIES)
    assert state.last_error is None
    assert state.count == 2
    assert state.last_synced_at is not None


async def test_overlapping_sync_of_same_kind_is_skipped(database, manager, fake_server, credential):
    release = asyncio.Event()

    async def slow_channels(request):
        await release.wait()
        return httpx.Response(200, json=SAMPLE_CHANNELS)

    fake_server.serve_handler("get_live_streams", slow_channels)
    fake_server.serve("get_live_categories", json=SAMPLE_CATEGORIES)

    first = asyncio.create_task(manager.sync(SyncKind.CHANNELS, credential))
    while not manager.coordinator.is_syncing(SyncKind.CHANNELS):
        await asyncio.sleep(0)

    skipped = await manager.sync(SyncKind.CHANNELS, credential)
    other_kind = await manager.sync(SyncKind.CATEGORIES, credential)
    release.set()
    completed = await first

    assert skipped.status == "skipped"
    assert other_kind.status == "success"
    assert completed.status == "success"
    assert completed.count == len(SAMPLE_CHANNELS)


async def test_sync_active_without_credentials(database, manager):
    results = await manager.sync_active()

    assert [result.kind for result in results] == [SyncKind.CATEGORIES, SyncKind.CHANNELS]
    assert all(result.error_code == "NO_CREDENTIALS" for result in results)


async def test_sync_active_uses_latest_credential(database, manager, fake_server):
    fake_server.serve("get_live_streams", json=SAMPLE_CHANNELS)
    fake_server.serve("get_live_categories", json=SAMPLE_CATEGORIES)
    async with session_scope() as session:
        await add_credential(session, CredentialPayload("http://old", "u", "p"))
    async with session_scope() as session:
        await add_credential(session, CredentialPayload("http://h", "u2", "p2"))

    results = await manager.sync_active()

    assert [result.status for result in results] == ["success", "success"]
    assert {request.url.host for request in fake_server.requests} == {"h"}
    async with session_scope() as session:
        assert await count_records(session, SyncKind.CHANNELS) == len(SAMPLE_CHANNELS)
        assert len(await list_categories(session)) == len(SAMPLE_CATEGORIES)


async def test_out_of_range_number_is_stored_as_default(database, manager, fake_server, credential):
    fake_server.serve("get_live_streams", content=b'[{"name": "A", "num": 99999999999999999999}]')

    result = await manager.sync(SyncKind.CHANNELS, credential)

    assert result.status == "success"
    async with session_scope() as session:
        channels = await list_channels(session)
    assert [(channel.name, channel.num) for channel in channels] == [("A", 0)]
    assert manager.publisher.snapshot(SyncKind.CHANNELS).is_loading is False


async def test_deeply_nested_body_fails_and_clears_loading(database, manager, fake_server, credential):
    fake_server.serve("get_live_streams", content=b"[" * 100000 + b"]" * 100000)

    result = await manager.sync(SyncKind.CHANNELS, credential)

    assert result.error_code == "DECODE_ERROR"
    state = manager.publisher.snapshot(SyncKind.CHANNELS)
    assert state.is_loading is False
    assert state.response_type == "Invalid JSON"


async def test_unexpected_exception_becomes_failed_result(
    database, manager, fake_server, credential, monkeypatch
):
    fake_server.serve("get_live_streams", json=SAMPLE_CHANNELS)
    await manager.sync(SyncKind.CHANNELS, credential)

    def broken_decode(body, model):
        raise OverflowError("int too large")

    monkeypatch.setattr("tvsync.services.sync_service.decode_records", broken_decode)
    result = await manager.sync(SyncKind.CHANNELS, credential)

    assert result.status == "failed"
    assert result.error_code == "UNEXPECTED_ERROR"
    assert "int too large" in result.error
    state = manager.publisher.snapshot(SyncKind.CHANNELS)
    assert state.is_loading is False
    assert state.error_code == "UNEXPECTED_ERROR"
    assert state.count == len(SAMPLE_CHANNELS)
    assert len(await _stored_channel_names()) == len(SAMPLE_CHANNELS)


async def test_search_treats_wildcards_literally(database, manager, fake_server, credential):
    fake_server.serve("get_live_streams", json=[{"name": "A_B"}, {"name": "AxB"}, {"name": "100% Hits"}])
    await manager.sync(SyncKind.CHANNELS, credential)

    async with session_scope() as session:
        underscore = [channel.name for channel in await list_channels(session, search="_")]
        percent = [channel.name for channel in await list_channels(session, search="%")]
        plain = [channel.name for channel in await list_channels(session, search="a")]

    assert underscore == ["A_B"]
    assert percent == ["100% Hits"]
    assert plain == ["A_B", "AxB"]
