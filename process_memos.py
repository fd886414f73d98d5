#!/usr/bin/env python3
"""
Voice Memo Pipeline — one-shot runner

Runs a single pass over the voice memos folder (or one file) and exits.
Already completed or failed recordings are skipped, same as the scheduler.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from voicememo.config import VOICE_MEMO_JOB, load_config
from voicememo.errors import ConfigError
from voicememo.ledger import StateLedger
from voicememo.logging_setup import setup_logging
from voicememo.notion import NotionClient
from voicememo.pipeline import FAILED, build_voice_memo_job
from voicememo.schema import initialize_schema
from voicememo.watcher import RecordingSource


def list_pending(config) -> int:
    ledger = StateLedger(config.state_file)
    source = RecordingSource(config.voice_memos_dir, config.supported_formats)
    pending = source.list_new(ledger, VOICE_MEMO_JOB)
    for recording in pending:
        print(f"{recording.recorded_at:%Y-%m-%d %H:%M:%S}  {recording.filename}")
    print(f"\n{len(pending)} recording(s) pending")
    return 0


async def process(config, file: Path = None, env_file: Path = Path(".env")) -> int:
    async with NotionClient(config.notion_api_key) as notion:
        schema = await initialize_schema(notion, config, env_file)
        job = build_voice_memo_job(config, schema, notion)

        if file is not None:
            result = await job.process_file(file)
            return 1 if result == FAILED else 0

        report = await job.execute()
        print(f"Processed: {report.processed}  Failed: {report.failed}  Invalid: {report.invalid}")
        return 1 if report.failed else 0


def main():
    parser = argparse.ArgumentParser(
        description="Route voice memos to Notion tasks, notes and journal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --file "20260110 090000-AB12.m4a"
  %(prog)s --dry-run

Environment:
  Set GEMINI_API_KEY, NOTION_API_KEY and PARENT_PAGE_ID (see .env.example)
        """
    )

    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Process only this recording"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List pending recordings without processing them"
    )

    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file (default: .env)"
    )

    args = parser.parse_args()

    try:
        config = load_config(args.env_file)
    except ConfigError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    setup_logging(
        config.log_file,
        max_bytes=config.log_max_mb * 1024 * 1024,
        backup_count=config.log_backups,
        level=logging.INFO,
    )

    if args.dry_run:
        sys.exit(list_pending(config))

    if args.file is not None and not args.file.is_file():
        print(f"❌ Error: file not found: {args.file}")
        sys.exit(1)

    sys.exit(asyncio.run(process(config, args.file, Path(args.env_file))))


if __name__ == "__main__":
    main()
