"""
Upload Scheduler — drives pending items through compress → upload in groups of
at most ``concurrency``. Every item in a group is started together and the next
group starts only after all of them settle.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .admission import check_size
from .client import FunctionsClient
from .compressor import ImageCompressor
from .config import Config
from .errors import AdmissionError, ConfigurationError, Failure
from .models import UploadBatch, UploadItem, UploadStatus
from .normalizer import UploadResult

logger = logging.getLogger(__name__)

MISSING_FOLDER_MESSAGE = (
    "Uploads are not configured yet: the destination folder is missing. "
    "Please contact the hosts."
)

INTERRUPTED_FAILURE = Failure(
    code="interrupted",
    message="Upload was interrupted. Please check the gallery before trying again.",
    retriable=True,
)


@dataclass(frozen=True)
class BatchSummary:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    configuration_error: str | None = None

    @property
    def level(self) -> str:
        if self.configuration_error or self.succeeded == 0:
            return "error"
        if self.failed:
            return "partial"
        return "success"

    @property
    def message(self) -> str:
        if self.configuration_error:
            return self.configuration_error
        if self.total == 0:
            return "Nothing to upload"
        if self.succeeded == 0:
            return "Upload failed. Please try again."
        if self.failed == 0:
            return f"{self.succeeded} uploaded"
        return f"{self.succeeded} of {self.total} uploaded"


StatusCallback = Callable[[UploadItem], None]
SummaryCallback = Callable[[BatchSummary], None]


def _chunks(items: list[UploadItem], size: int) -> list[list[UploadItem]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class UploadScheduler:
    """Bounded-concurrency uploader with a per-item status state machine."""

    def __init__(
        self,
        client: FunctionsClient,
        compressor: ImageCompressor | None = None,
        concurrency: int | None = None,
        timeout: float | None = None,
        on_status: StatusCallback | None = None,
        on_summary: SummaryCallback | None = None,
    ):
        self.client = client
        self.compressor = compressor or ImageCompressor()
        self.concurrency = max(1, concurrency or Config.UPLOAD_CONCURRENCY)
        self.timeout = timeout if timeout is not None else Config.UPLOAD_TIMEOUT_SECONDS
        self._on_status = on_status
        self._on_summary = on_summary

    def _notify(self, item: UploadItem | None) -> None:
        if item is None or not self._on_status:
            return
        try:
            self._on_status(item)
        except Exception as e:
            logger.warning("Status callback failed for %s", item.original.filename, exc_info=e)

    def _finish(self, summary: BatchSummary) -> BatchSummary:
        if self._on_summary:
            try:
                self._on_summary(summary)
            except Exception as e:
                logger.warning("Summary callback failed", exc_info=e)
        return summary

    def _mark(self, batch: UploadBatch, item_id: str, status: UploadStatus, failure: Failure | None = None):
        item = batch.set_status(item_id, status, failure)
        self._notify(item)
        return item

    @staticmethod
    def _abandon(batch: UploadBatch, items: list[UploadItem]) -> None:
        """Settle items still marked uploading when a run is interrupted. No callbacks fire."""
        for item in items:
            if item.id in batch and item.status is UploadStatus.UPLOADING:
                batch.set_status(item.id, UploadStatus.ERROR, INTERRUPTED_FAILURE)
                logger.warning("Upload of %s interrupted", item.original.filename)

    async def run(self, batch: UploadBatch, folder_id: str | None) -> BatchSummary:
        """
        Upload every pending item in ``batch`` to ``folder_id``.

        Exceptions raised by ``on_status`` are logged and ignored. If the run
        itself is interrupted (cancellation, or a BaseException out of a
        callback) every item left uploading is set to error before it propagates.
        """
        pending = batch.pending()
        if not pending:
            return self._finish(BatchSummary())

        if not folder_id or not folder_id.strip():
            failure = ConfigurationError(MISSING_FOLDER_MESSAGE).failure()
            for item in pending:
                self._mark(batch, item.id, UploadStatus.ERROR, failure)
            logger.error("Upload blocked: destination folder id is missing (%d items)", len(pending))
            return self._finish(BatchSummary(
                total=len(pending), failed=len(pending), configuration_error=MISSING_FOLDER_MESSAGE,
            ))

        succeeded = failed = 0
        for group in _chunks(pending, self.concurrency):
            # Skip anything removed by the user while earlier groups were running
            group = [item for item in group if item.id in batch and item.status is UploadStatus.PENDING]
            tasks: list[asyncio.Task] = []
            try:
                for item in group:
                    self._mark(batch, item.id, UploadStatus.UPLOADING)
                tasks = [asyncio.create_task(self._process(batch, item, folder_id)) for item in group]
                outcomes = await asyncio.gather(*tasks)
            except BaseException:
                # gather leaves siblings running after the first failure
                for task in tasks:
                    task.cancel()
                self._abandon(batch, group)
                raise
            succeeded += sum(1 for ok in outcomes if ok)
            failed += sum(1 for ok in outcomes if not ok)

        summary = BatchSummary(total=succeeded + failed, succeeded=succeeded, failed=failed)
        logger.info("Upload run finished: %s", summary.message)
        return self._finish(summary)

    async def _process(self, batch: UploadBatch, item: UploadItem, folder_id: str) -> bool:
        """Upload one item and record its terminal status as soon as it settles."""
        try:
            try:
                result = await self._upload_item(item, folder_id)
            except Exception as e:
                logger.error("Unexpected failure uploading %s", item.original.filename, exc_info=e)
                result = UploadResult.failed(Failure(code="internal", message=str(e) or "Upload failed"))

            if result.ok:
                item.remote_id = result.remote_id
                item.remote_name = result.remote_name
                self._mark(batch, item.id, UploadStatus.SUCCESS)
            else:
                logger.info("Upload of %s failed: %s", item.original.filename, result.failure.message)
                self._mark(batch, item.id, UploadStatus.ERROR, result.failure)
            return result.ok
        except BaseException:
            self._abandon(batch, [item])
            raise

    async def _upload_item(self, item: UploadItem, folder_id: str) -> UploadResult:
        await self.compressor.compress(item)

        # Size is checked again; the payload may have changed since admission
        try:
            check_size(item.payload.filename, item.size_bytes, item.kind)
        except AdmissionError as e:
            return UploadResult.failed(e.failure())

        return await self.client.upload(item.payload, folder_id, timeout=self.timeout)
