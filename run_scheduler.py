#!/usr/bin/env python3
"""
Voice Memo Pipeline — Scheduler Daemon

Polls the voice memos folder on an interval and routes each new recording
to Notion as tasks, notes or a journal entry.

Architecture:
    Voice Memos (iPhone / Mac)
        ↓
    Local Voice Memos folder
        ↓
    This Scheduler (you are here)
        ↓
    Gemini (transcribe, route, extract / format)
        ↓
    Notion (TODOs, Notes, Journal)

Usage:
    python run_scheduler.py

Configuration:
    Set environment variables in .env file.
    See .env.example for all options.
"""

import asyncio
import logging
import signal
import sys

from voicememo import __version__
from voicememo.config import load_config
from voicememo.errors import ConfigError
from voicememo.logging_setup import setup_logging
from voicememo.notion import NotionClient
from voicememo.pipeline import build_voice_memo_job
from voicememo.scheduler import JobScheduler
from voicememo.schema import initialize_schema


async def run() -> int:
    # ── Configuration ───────────────────────────────────────────────
    try:
        config = load_config()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logging.getLogger("voicememo").error(str(e))
        return 1

    # ── Logging ─────────────────────────────────────────────────────
    logger = setup_logging(
        config.log_file,
        max_bytes=config.log_max_mb * 1024 * 1024,
        backup_count=config.log_backups,
    )

    logger.info(f"Voice memos: {config.voice_memos_dir}")
    logger.info(f"Archive:     {config.archive_dir}")
    logger.info(f"State file:  {config.state_file}")
    logger.info(f"API keys:    {len(config.gemini_api_keys)} configured")
    logger.info(f"Model:       {config.gemini_model}")

    if not config.voice_memos_dir.exists():
        logger.warning(f"Voice memos directory does not exist yet: {config.voice_memos_dir}")

    async with NotionClient(config.notion_api_key) as notion:
        # ── Notion schema (bootstrap on first start) ────────────────
        schema = await initialize_schema(notion, config)
        job = build_voice_memo_job(config, schema, notion)

        scheduler = JobScheduler()
        scheduler.register(job)

        # Graceful shutdown on Ctrl+C or kill
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        # ── Start ───────────────────────────────────────────────────
        logger.info("")
        logger.info("╔══════════════════════════════════════════════════════════╗")
        logger.info("║  Voice Memo Pipeline v{:<34s} ║".format(__version__))
        logger.info("║  Every {:<3d} min, press Ctrl+C to stop                    ║".format(
            config.job_interval_minutes))
        logger.info("╚══════════════════════════════════════════════════════════╝")
        logger.info("")

        scheduler.start()
        await stop_event.wait()

        logger.info("Received shutdown signal, stopping gracefully...")
        await scheduler.stop()
    return 0


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
