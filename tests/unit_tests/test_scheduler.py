import asyncio
import json

import httpx
import pytest

from media_pipeline import compressor
from media_pipeline.admission import RawFile, admit
from media_pipeline.client import FunctionsClient
from media_pipeline.compressor import MEDIUM_TIER, ImageCompressor
from media_pipeline.models import MediaKind, Payload, UploadBatch, UploadItem, UploadStatus
from media_pipeline.normalizer import UploadResult, normalize_upload_response
from media_pipeline.scheduler import MISSING_FOLDER_MESSAGE, UploadScheduler
from tests.fixtures.images import MIB, dimensions, padded_jpeg


class PassthroughCompressor:
    async def compress(self, item: UploadItem) -> bool:
        return False


class RecordingClient:
    """Fake functions client that tracks how many uploads overlap."""

    def __init__(self, respond=None, delay: float = 0.02):
        self.respond = respond or (lambda payload: UploadResult.success(f"id-{payload.filename}", payload.filename))
        self.delay = delay
        self.calls: list[tuple[Payload, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def upload(self, payload, folder_id, timeout=None):
        self.calls.append((payload, folder_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return self.respond(payload)
        finally:
            self.in_flight -= 1


def _batch(count: int) -> UploadBatch:
    batch = UploadBatch()
    for i in range(count):
        batch.add(UploadItem(
            original=Payload(filename=f"photo-{i}.jpg", mime_type="image/jpeg", data=b"tiny"),
            kind=MediaKind.IMAGE,
        ))
    return batch


async def test_at_most_three_uploading_for_seven_items():
    batch = _batch(7)
    client = RecordingClient()
    observed = []

    def on_status(item):
        observed.append(sum(1 for i in batch if i.status is UploadStatus.UPLOADING))

    scheduler = UploadScheduler(client, compressor=PassthroughCompressor(), concurrency=3, on_status=on_status)
    summary = await scheduler.run(batch, "folder-1")

    assert max(observed) <= 3
    assert client.max_in_flight <= 3
    assert len(client.calls) == 7
    assert summary.succeeded == 7
    assert summary.message == "7 uploaded"
    assert all(item.status is UploadStatus.SUCCESS for item in batch)
    assert all(item.remote_id == f"id-{item.original.filename}" for item in batch)


async def test_rerun_over_finished_batch_is_a_no_op():
    batch = _batch(4)
    client = RecordingClient()
    scheduler = UploadScheduler(client, compressor=PassthroughCompressor())

    await scheduler.run(batch, "folder-1")
    summary = await scheduler.run(batch, "folder-1")

    assert len(client.calls) == 4
    assert summary.total == 0
    assert summary.message == "Nothing to upload"


async def test_missing_folder_marks_everything_error_without_network():
    batch = _batch(3)
    client = RecordingClient()
    summaries = []
    scheduler = UploadScheduler(client, compressor=PassthroughCompressor(), on_summary=summaries.append)

    summary = await scheduler.run(batch, "   ")

    assert client.calls == []
    assert all(item.status is UploadStatus.ERROR for item in batch)
    assert all(item.error.code == "configuration" for item in batch)
    assert summary.configuration_error == MISSING_FOLDER_MESSAGE
    assert summary.level == "error"
    assert summaries == [summary]


async def test_success_without_id_counts_as_failure():
    batch = _batch(2)
    client = RecordingClient(respond=lambda payload: normalize_upload_response(200, json.dumps({"success": True})))
    scheduler = UploadScheduler(client, compressor=PassthroughCompressor())

    summary = await scheduler.run(batch, "folder-1")

    assert summary.failed == 2
    assert summary.succeeded == 0
    assert summary.message == "Upload failed. Please try again."
    assert all(item.status is UploadStatus.ERROR for item in batch)


async def test_partial_failure_summary():
    batch = _batch(3)

    def respond(payload):
        if payload.filename == "photo-1.jpg":
            return normalize_upload_response(500, json.dumps({"success": False, "error": "quota"}))
        return UploadResult.success("ok", payload.filename)

    summary = await UploadScheduler(RecordingClient(respond), compressor=PassthroughCompressor()).run(batch, "f")

    assert summary.level == "partial"
    assert summary.message == "2 of 3 uploaded"
    failed = [item for item in batch if item.status is UploadStatus.ERROR]
    assert [item.original.filename for item in failed] == ["photo-1.jpg"]
    assert failed[0].error.message == "quota"


async def test_unexpected_exception_fails_only_that_item():
    batch = _batch(2)

    def respond(payload):
        if payload.filename == "photo-0.jpg":
            raise RuntimeError("boom")
        return UploadResult.success("ok", payload.filename)

    summary = await UploadScheduler(RecordingClient(respond), compressor=PassthroughCompressor()).run(batch, "f")

    assert summary.succeeded == 1
    first = next(iter(batch))
    assert first.status is UploadStatus.ERROR
    assert first.error.code == "internal"


async def test_item_removed_mid_run_is_skipped():
    batch = _batch(5)
    last = list(batch)[-1]
    client = RecordingClient()

    def on_status(item):
        if item.status is UploadStatus.UPLOADING and last.id in batch:
            batch.remove(last.id)

    scheduler = UploadScheduler(client, compressor=PassthroughCompressor(), concurrency=2, on_status=on_status)
    summary = await scheduler.run(batch, "folder-1")

    assert summary.total == 4
    assert len(client.calls) == 4
    assert last.original.filename not in [payload.filename for payload, _ in client.calls]


async def test_items_settle_independently():
    batch = _batch(3)
    order = []

    class StaggeredClient(RecordingClient):
        async def upload(self, payload, folder_id, timeout=None):
            await asyncio.sleep(0.05 if payload.filename == "photo-0.jpg" else 0.0)
            order.append(payload.filename)
            return UploadResult.success("id", payload.filename)

    slow_status_seen = []

    def on_status(item):
        if item.status is UploadStatus.SUCCESS and item.original.filename != "photo-0.jpg":
            slow_status_seen.append(batch.get(list(batch)[0].id).status)

    await UploadScheduler(StaggeredClient(), compressor=PassthroughCompressor(), on_status=on_status).run(batch, "f")

    assert order[-1] == "photo-0.jpg"
    # Faster siblings finish while the slow one is still in flight
    assert slow_status_seen == [UploadStatus.UPLOADING, UploadStatus.UPLOADING]


async def test_two_mib_jpeg_end_to_end(monkeypatch):
    data = padded_jpeg(3000, 2000, 2 * MIB)
    batch = UploadBatch()
    admit([RawFile(name="x.jpg", mime_type="image/jpeg", data=data)], batch)

    tiers = []
    real_compress = compressor.compress_bytes

    def spy(payload, tier):
        tiers.append(tier)
        return real_compress(payload, tier)

    monkeypatch.setattr(compressor, "compress_bytes", spy)

    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json={"success": True, "id": "abc", "name": "x.jpg"})

    client = FunctionsClient(base_url="http://functions.test", api_key="k", transport=httpx.MockTransport(handler))
    image_compressor = ImageCompressor()
    try:
        summary = await UploadScheduler(client, compressor=image_compressor).run(batch, "folder-1")
    finally:
        image_compressor.shutdown()

    item = next(iter(batch))
    assert tiers == [MEDIUM_TIER]
    assert item.status is UploadStatus.SUCCESS
    assert item.remote_id == "abc"
    assert item.was_compressed
    assert max(dimensions(item.payload.data)) <= 1920
    assert len(sent) == 1
    assert len(sent[0].content) < len(data)
    assert summary.message == "1 uploaded"


@pytest.mark.parametrize("concurrency", [1, 2, 5])
async def test_concurrency_bound_is_configurable(concurrency):
    client = RecordingClient()
    await UploadScheduler(client, compressor=PassthroughCompressor(), concurrency=concurrency).run(_batch(6), "f")

    assert client.max_in_flight <= concurrency


async def test_failing_status_callback_does_not_stop_the_run():
    batch = _batch(3)
    client = RecordingClient()

    def on_status(item):
        if item.original.filename == "photo-1.jpg" and item.status is UploadStatus.UPLOADING:
            raise RuntimeError("ui gone")

    summary = await UploadScheduler(client, compressor=PassthroughCompressor(), on_status=on_status).run(batch, "f")

    assert summary.succeeded == 3
    assert len(client.calls) == 3
    assert all(item.status is UploadStatus.SUCCESS for item in batch)


class PageRerun(BaseException):
    """Stands in for a UI framework aborting the script mid-run."""


async def test_interrupted_run_settles_every_uploading_item():
    batch = _batch(4)
    client = RecordingClient(delay=0.0)

    class SlowForOthers(RecordingClient):
        async def upload(self, payload, folder_id, timeout=None):
            if payload.filename != "photo-0.jpg":
                await asyncio.sleep(1)
            return await client.upload(payload, folder_id, timeout)

    def on_status(item):
        if item.status is UploadStatus.SUCCESS:
            raise PageRerun()

    scheduler = UploadScheduler(SlowForOthers(), compressor=PassthroughCompressor(), on_status=on_status)
    with pytest.raises(PageRerun):
        await scheduler.run(batch, "f")
    # Let the cancelled siblings unwind
    await asyncio.sleep(0.01)

    statuses = {item.original.filename: item.status for item in batch}
    assert statuses == {
        "photo-0.jpg": UploadStatus.SUCCESS,
        "photo-1.jpg": UploadStatus.ERROR,
        "photo-2.jpg": UploadStatus.ERROR,
        "photo-3.jpg": UploadStatus.PENDING,
    }
    assert batch.counts()[UploadStatus.UPLOADING] == 0
    interrupted = [item for item in batch if item.status is UploadStatus.ERROR]
    assert all(item.error.code == "interrupted" and item.error.retriable for item in interrupted)
    # Nothing is stuck: settled items can be removed
    for item in interrupted:
        batch.remove(item.id)


async def test_interrupt_while_marking_uploading_settles_marked_items():
    batch = _batch(3)
    client = RecordingClient()

    def on_status(item):
        if item.original.filename == "photo-1.jpg" and item.status is UploadStatus.UPLOADING:
            raise PageRerun()

    with pytest.raises(PageRerun):
        await UploadScheduler(client, compressor=PassthroughCompressor(), on_status=on_status).run(batch, "f")

    assert client.calls == []
    assert batch.counts()[UploadStatus.UPLOADING] == 0
    statuses = [item.status for item in batch]
    assert statuses == [UploadStatus.ERROR, UploadStatus.ERROR, UploadStatus.PENDING]
