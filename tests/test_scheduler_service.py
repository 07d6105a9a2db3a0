import asyncio

import pytest

from game_events.services.errors import FetchFailure
from game_events.services.fetch_types import TrackedChannel
from game_events.services.scheduler_service import SyncScheduler
from game_events.services.sync_service import SyncResult


CHANNELS = [
    TrackedChannel(channel_identifier="UC1", game_label="Game One"),
    TrackedChannel(channel_identifier="UC2", game_label="Game Two"),
]


async def _channels():
    return list(CHANNELS)


class BlockingSync:
    """Sync stub that holds every call until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = []

    async def sync_channel(self, channel_identifier, game_label):
        self.calls.append(channel_identifier)
        await self.release.wait()
        return SyncResult(channel_identifier=channel_identifier, game_label=game_label, events_created=1)


class RecordingSync:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    async def sync_channel(self, channel_identifier, game_label):
        self.calls.append(channel_identifier)
        if channel_identifier in self.failing:
            raise FetchFailure(channel_identifier)
        return SyncResult(channel_identifier=channel_identifier, game_label=game_label)


@pytest.mark.asyncio
async def test_second_firing_is_skipped_while_first_in_flight():
    sync = BlockingSync()
    scheduler = SyncScheduler(sync=sync, channel_source=_channels)

    first = scheduler.trigger_scheduled_pass()
    await asyncio.sleep(0)

    assert first is not None
    assert scheduler.is_in_flight()
    assert scheduler.trigger_scheduled_pass() is None

    sync.release.set()
    summary = await first

    assert summary["channels_processed"] == 2
    assert sync.calls == ["UC1", "UC2"]
    assert not scheduler.is_in_flight()

    again = scheduler.trigger_scheduled_pass()
    assert again is not None
    await again


@pytest.mark.asyncio
async def test_channel_failure_does_not_abort_pass():
    sync = RecordingSync(failing={"UC1"})
    scheduler = SyncScheduler(sync=sync, channel_source=_channels)

    summary = await scheduler.run_pass("scheduled")

    assert sync.calls == ["UC1", "UC2"]
    assert summary["channels_failed"] == 1
    assert summary["failures"][0]["channel_identifier"] == "UC1"
    assert [d["channel_identifier"] for d in summary["channel_details"]] == ["UC2"]


@pytest.mark.asyncio
async def test_guard_released_after_failing_pass():
    async def broken_source():
        raise RuntimeError("database not initialized")

    scheduler = SyncScheduler(sync=RecordingSync(), channel_source=broken_source)

    summary = await scheduler.trigger_scheduled_pass()

    assert summary["status"] == "failed"
    assert not scheduler.is_in_flight()


@pytest.mark.asyncio
async def test_manual_sync_propagates_failure():
    scheduler = SyncScheduler(sync=RecordingSync(failing={"UC1"}), channel_source=_channels)

    with pytest.raises(FetchFailure):
        await scheduler.sync_channel("UC1", "Game One")


@pytest.mark.asyncio
async def test_manual_sync_ignores_in_flight_guard():
    blocking = BlockingSync()
    scheduler = SyncScheduler(sync=blocking, channel_source=_channels)
    scheduled = scheduler.trigger_scheduled_pass()
    await asyncio.sleep(0)

    manual = asyncio.ensure_future(scheduler.sync_channel("UC2", "Game Two"))
    await asyncio.sleep(0)
    assert blocking.calls == ["UC1", "UC2"]

    blocking.release.set()
    result = await manual
    await scheduled
    assert result.channel_identifier == "UC2"


@pytest.mark.asyncio
async def test_start_runs_initial_pass_outside_guard():
    sync = BlockingSync()
    scheduler = SyncScheduler(sync=sync, channel_source=_channels)

    scheduler.start(30)
    try:
        await asyncio.sleep(0)
        assert scheduler.initial_pass is not None
        assert scheduler.get_next_run_time() is not None
        assert not scheduler.is_in_flight()

        scheduled = scheduler.trigger_scheduled_pass()
        assert scheduled is not None

        sync.release.set()
        initial_summary = await scheduler.initial_pass
        await scheduled
        assert initial_summary["pass"] == "initial"
    finally:
        scheduler.stop()

    assert scheduler.get_next_run_time() is None


@pytest.mark.asyncio
async def test_start_is_idempotent():
    scheduler = SyncScheduler(sync=RecordingSync(), channel_source=_channels)

    scheduler.start(30)
    try:
        first_scheduler = scheduler.scheduler
        first_initial = scheduler.initial_pass

        scheduler.start(30)

        assert scheduler.scheduler is first_scheduler
        assert scheduler.initial_pass is first_initial
        await first_initial
    finally:
        scheduler.stop()
