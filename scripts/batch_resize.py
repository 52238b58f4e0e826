#!/usr/bin/env python
"""Resize a batch of photos through the API and save the results as a ZIP."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from photo_resizer.config import get_settings
from photo_resizer.models import PRESETS, BatchItem, BatchResult, get_preset
from photo_resizer.services.archive import archive_name, build_zip
from photo_resizer.services.batch_processor import BatchProcessor
from photo_resizer.services.resize_client import ResizeClient
from photo_resizer.utils.color import hex_to_rgb, rgb_to_hex
from photo_resizer.utils.formatting import format_size


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Batch resize/compress photos")
    parser.add_argument("files", nargs="+", type=Path)
    parser.add_argument("--preset", default="instagram", choices=sorted(PRESETS))
    parser.add_argument("--quality", type=int, default=80, help="JPEG quality, 1-100")
    parser.add_argument("--background", default="#ffffff", help="Letterbox colour as #rrggbb")
    parser.add_argument("--fit", choices=["contain", "inside", "cover"], default=None)
    parser.add_argument("--url", default=settings.api_url)
    parser.add_argument("--concurrency", type=int, default=settings.batch_concurrency)
    parser.add_argument("--output", type=Path, default=None, help="ZIP path (default: resized_images_<ts>.zip)")
    return parser


def print_report(result: BatchResult) -> None:
    for outcome in result.outcomes:
        if outcome.ok and outcome.metrics:
            print(
                f"  {outcome.name}: {format_size(outcome.original_size)} -> "
                f"{format_size(outcome.metrics.new_size)} ({outcome.metrics.reduction})"
            )
        else:
            print(f"  {outcome.name}: FAILED - {outcome.error}")
    print(
        f"Total: {format_size(result.total_original)} -> {format_size(result.total_compressed)} "
        f"({result.savings_percent}% saved)"
    )


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if not 1 <= args.quality <= 100:
        raise SystemExit("--quality must be between 1 and 100")
    background = hex_to_rgb(args.background)
    preset = get_preset(args.preset)
    items = [BatchItem.from_path(path) for path in args.files]

    print(f"Resizing {len(items)} image(s) to {preset.label} {preset.width}x{preset.height}, background {rgb_to_hex(background)}")
    async with ResizeClient(args.url, timeout=settings.client_timeout_seconds) as client:
        processor = BatchProcessor(
            client,
            concurrency=args.concurrency,
            max_dim=settings.predownscale_max_dim,
            upload_quality=settings.predownscale_quality,
        )
        result = await processor.run(
            items,
            preset,
            args.quality / 100,
            background=background,
            fit=args.fit,
            on_progress=lambda pct: print(f"  progress {pct:.0f}%"),
        )

    print_report(result)
    if result.succeeded:
        output = args.output or Path(archive_name())
        output.write_bytes(build_zip(result, settings.zip_suffix))
        print(f"Saved {len(result.succeeded)} image(s) to {output}")
    return 1 if result.failed else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=get_settings().log_level.upper())
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
