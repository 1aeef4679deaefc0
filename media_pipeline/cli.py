"""
Command-line uploader — admits local photos/videos and sends them to the
upload-photo function with the same limits and batching as the web page.
"""

import argparse
import asyncio
import logging
import mimetypes
import time
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from .admission import RawFile, admit, format_size
from .client import FunctionsClient
from .compressor import ImageCompressor
from .config import Config
from .models import UploadBatch, UploadItem, UploadStatus
from .scheduler import BatchSummary, UploadScheduler

console = Console()

STATUS_STYLE = {
    UploadStatus.PENDING: "dim",
    UploadStatus.UPLOADING: "yellow",
    UploadStatus.SUCCESS: "green",
    UploadStatus.ERROR: "red",
}


def read_files(paths: list[str]) -> list[RawFile]:
    files = []
    for p in paths:
        path = Path(p)
        if not path.is_file():
            console.print(f"[yellow]⚠ Skipping {p}: not a file[/]")
            continue
        mime, _ = mimetypes.guess_type(path.name)
        files.append(RawFile(name=path.name, mime_type=mime or "", data=path.read_bytes()))
    return files


def _print_status(item: UploadItem) -> None:
    style = STATUS_STYLE[item.status]
    line = f"  [{style}]{item.status.value:<9}[/] {item.original.filename}"
    if item.status is UploadStatus.SUCCESS and item.was_compressed:
        line += f" ({format_size(item.original.size)} → {format_size(item.size_bytes)})"
    if item.status is UploadStatus.ERROR and item.error:
        line += f" — {item.error.message}"
    console.print(line)


def _print_summary(summary: BatchSummary) -> None:
    border = {"success": "green", "partial": "yellow", "error": "red"}[summary.level]
    console.print(Panel(summary.message, title="📸 Upload", border_style=border))


async def upload_paths(paths: list[str], folder_id: str | None, concurrency: int) -> BatchSummary:
    batch = UploadBatch()
    report = admit(read_files(paths), batch)
    for message in report.messages:
        console.print(f"[red]✗ {message}[/]")

    client = FunctionsClient()
    if folder_id is None:
        app_config = await client.fetch_config()
        if app_config.error:
            console.print(f"[red]{app_config.error}[/]")
        folder_id = app_config.upload_folder_id

    compressor = ImageCompressor()
    scheduler = UploadScheduler(
        client,
        compressor=compressor,
        concurrency=concurrency,
        on_status=_print_status,
        on_summary=_print_summary,
    )
    try:
        return await scheduler.run(batch, folder_id)
    finally:
        compressor.shutdown()
        batch.clear()


def main():
    """Command-line interface."""
    parser = argparse.ArgumentParser(description="Upload event photos and videos")
    parser.add_argument("files", nargs="+", help="Images or videos to upload")
    parser.add_argument("-f", "--folder", help="Destination folder id (default: from get-config)")
    parser.add_argument(
        "-c", "--concurrency",
        type=int,
        default=Config.UPLOAD_CONCURRENCY,
        help=f"Uploads in flight at once (default: {Config.UPLOAD_CONCURRENCY})",
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    Config.validate()

    start = time.time()
    summary = asyncio.run(upload_paths(args.files, args.folder, args.concurrency))
    console.print(f"  ⏱️  {time.time() - start:.1f}s")
    raise SystemExit(0 if summary.level == "success" else 1)


if __name__ == "__main__":
    main()
