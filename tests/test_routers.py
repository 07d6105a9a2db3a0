import httpx
import pytest
import pytest_asyncio

from game_events import routers
from game_events.main import app
from game_events.services import db_service
from game_events.services.errors import FetchFailure, ResolutionFailure
from game_events.services.scheduler_service import sync_scheduler
from game_events.services.sync_service import SyncResult


@pytest_asyncio.fixture
async def client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _create_event(client, **overrides):
    payload = {
        "game_label": "Game",
        "title": "Anniversary",
        "start_date": "2024-03-10",
        "end_date": "2024-04-05",
        "source_url": "https://example.com/news",
    }
    payload.update(overrides)
    return await client.post("/events", json=payload)


@pytest.fixture
def fake_resolve(monkeypatch):
    async def _resolve(url):
        if "missing" in url:
            raise ResolutionFailure(url)
        if "second" in url:
            return "UCsecond00000000000000000"
        return "UCresolved000000000000000"

    monkeypatch.setattr(routers, "resolve", _resolve)
    monkeypatch.setattr(db_service, "resolve", _resolve)


@pytest.fixture
def fake_sync(monkeypatch):
    calls = []

    async def _sync(channel_identifier, game_label):
        calls.append((channel_identifier, game_label))
        if game_label == "Broken":
            raise FetchFailure(channel_identifier)
        return SyncResult(channel_identifier=channel_identifier, game_label=game_label, videos_fetched=2)

    monkeypatch.setattr(sync_scheduler, "sync_channel", _sync)
    return calls


@pytest.mark.asyncio
async def test_manual_event_roundtrip(client):
    response = await _create_event(client)
    assert response.status_code == 201
    event = response.json()
    assert event["event_key"].startswith("manual_")
    assert event["video_id"] is None

    response = await client.get(f"/events/{event['id']}")
    assert response.status_code == 200
    assert response.json()["title"] == "Anniversary"

    response = await client.delete(f"/events/{event['id']}")
    assert response.status_code == 200

    response = await client.get(f"/events/{event['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_manual_event_rejects_reversed_dates(client):
    response = await _create_event(client, start_date="2024-04-05", end_date="2024-03-10")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_events_by_month_includes_overlapping_events(client):
    await _create_event(client)
    await _create_event(client, title="May only", start_date="2024-05-02", end_date=None)

    response = await client.get("/events/by-month/2024/4")
    assert [e["title"] for e in response.json()["events"]] == ["Anniversary"]

    response = await client.get("/events/by-month/2024/5")
    assert [e["title"] for e in response.json()["events"]] == ["May only"]

    response = await client.get("/events/by-month/2024/13")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_events_by_date_and_game(client):
    await _create_event(client)
    await _create_event(client, game_label="Other", title="Other launch", start_date="2024-01-01", end_date=None)

    response = await client.get("/events/by-date", params={"start_date": "2024-04-01", "end_date": "2024-04-30"})
    assert [e["title"] for e in response.json()["events"]] == ["Other launch", "Anniversary"]

    response = await client.get("/events", params={"game_label": "Other"})
    assert response.json()["count"] == 1


@pytest.mark.asyncio
async def test_create_channel_resolves_and_syncs(client, fake_resolve, fake_sync):
    response = await client.post(
        "/channels",
        json={"game_label": "Game", "channel_url": "https://www.youtube.com/@game"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["channel"]["channel_identifier"] == "UCresolved000000000000000"
    assert body["sync"]["videos_fetched"] == 2
    assert fake_sync == [("UCresolved000000000000000", "Game")]

    response = await client.post(
        "/channels",
        json={"game_label": "Game", "channel_url": "https://www.youtube.com/@other"},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_channel_survives_failed_first_sync(client, fake_resolve, fake_sync):
    response = await client.post(
        "/channels",
        json={"game_label": "Broken", "channel_url": "https://www.youtube.com/@broken"},
    )

    assert response.status_code == 201
    assert response.json()["sync"] is None


@pytest.mark.asyncio
async def test_create_channel_unresolvable_url(client, fake_resolve, fake_sync):
    response = await client.post(
        "/channels",
        json={"game_label": "Game", "channel_url": "https://www.youtube.com/@missing"},
    )

    assert response.status_code == 400
    assert fake_sync == []


@pytest.mark.asyncio
async def test_manual_channel_sync_failure_is_reported(client, fake_resolve, fake_sync):
    created = await client.post(
        "/channels",
        json={"game_label": "Broken", "channel_url": "https://www.youtube.com/@broken"},
    )
    channel_id = created.json()["channel"]["id"]

    response = await client.post(f"/channels/{channel_id}/sync")
    assert response.status_code == 502

    response = await client.post("/channels/999/sync")
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("start_date", ["20240301", "2024-W10-1", "2024-02-30"])
async def test_manual_event_requires_calendar_dates(client, start_date):
    response = await _create_event(client, start_date=start_date, end_date=None)
    assert response.status_code == 422

    response = await client.get("/events")
    assert response.json()["count"] == 0


@pytest.mark.asyncio
async def test_update_event_keeps_key(client):
    event = (await _create_event(client)).json()

    response = await client.put(
        f"/events/{event['id']}",
        json={"title": "Anniversary extended", "end_date": "2024-04-20"},
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["event_key"] == event["event_key"]
    assert updated["title"] == "Anniversary extended"
    assert updated["start_date"] == "2024-03-10"
    assert updated["end_date"] == "2024-04-20"

    response = await client.put(f"/events/{event['id']}", json={"end_date": None})
    assert response.json()["end_date"] is None


@pytest.mark.asyncio
async def test_update_event_rejects_bad_dates(client):
    event = (await _create_event(client)).json()

    # end_date from the stored row is before the new start_date
    response = await client.put(f"/events/{event['id']}", json={"start_date": "2024-05-01"})
    assert response.status_code == 422

    response = await client.put(f"/events/{event['id']}", json={"start_date": "20240301"})
    assert response.status_code == 422

    response = await client.get(f"/events/{event['id']}")
    assert response.json()["start_date"] == "2024-03-10"

    response = await client.put("/events/999", json={"title": "Nothing"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_channel(client, fake_resolve, fake_sync):
    created = await client.post(
        "/channels",
        json={"game_label": "Game", "channel_url": "https://www.youtube.com/@game"},
    )
    channel_id = created.json()["channel"]["id"]

    response = await client.get(f"/channels/{channel_id}")
    assert response.status_code == 200
    assert response.json()["game_label"] == "Game"

    response = await client.get("/channels/999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_channel_resolves_new_url(client, fake_resolve, fake_sync):
    created = await client.post(
        "/channels",
        json={"game_label": "Game", "channel_url": "https://www.youtube.com/@game"},
    )
    channel_id = created.json()["channel"]["id"]

    response = await client.put(
        f"/channels/{channel_id}",
        json={"game_label": "Game Remastered", "channel_url": "https://www.youtube.com/@second"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["game_label"] == "Game Remastered"
    assert body["source_url"] == "https://www.youtube.com/@second"
    assert body["channel_identifier"] == "UCsecond00000000000000000"

    response = await client.put(
        f"/channels/{channel_id}",
        json={"channel_url": "https://www.youtube.com/@missing"},
    )
    assert response.status_code == 400

    response = await client.get(f"/channels/{channel_id}")
    assert response.json()["channel_identifier"] == "UCsecond00000000000000000"

    response = await client.put("/channels/999", json={"game_label": "Nobody"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_channel_conflicts(client, fake_resolve, fake_sync):
    await client.post(
        "/channels",
        json={"game_label": "Game", "channel_url": "https://www.youtube.com/@game"},
    )
    created = await client.post(
        "/channels",
        json={"game_label": "Sequel", "channel_url": "https://www.youtube.com/@second"},
    )
    channel_id = created.json()["channel"]["id"]

    response = await client.put(f"/channels/{channel_id}", json={"game_label": "Game"})
    assert response.status_code == 409

    response = await client.put(
        f"/channels/{channel_id}",
        json={"channel_url": "https://www.youtube.com/@game-again"},
    )
    assert response.status_code == 409

    response = await client.get(f"/channels/{channel_id}")
    assert response.json()["game_label"] == "Sequel"
