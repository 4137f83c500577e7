"""Command-line entry point: ``python -m quota_watcher``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

import orjson

from .config import ConfigurationError
from .events import EventType
from .logging_config import setup_logging
from .models import ApiMethod, QuotaSnapshot, RetryInfo, format_time_until_reset
from .quota_engine import QuotaEngine
from .watcher_config import WatcherConfig, clamp_poll_interval, load_watcher_config

SERVICE_NAME = "quota_watcher"

logger = logging.getLogger(__name__)


def describe_snapshot(snapshot: QuotaSnapshot) -> List[str]:
    lines: List[str] = []
    if snapshot.plan_name:
        lines.append(f"Plan: {snapshot.plan_name}")
    credits = snapshot.prompt_credits
    if credits is not None:
        lines.append(
            f"Prompt credits: {credits.available:g}/{credits.monthly:g} ({credits.remaining_percentage:.1f}% left)"
        )
    for model in sorted(snapshot.models, key=lambda item: item.label):
        if model.is_exhausted:
            status = "exhausted"
        else:
            status = f"{model.remaining_percentage:.1f}%"
        reset = format_time_until_reset(model.time_until_reset(snapshot.timestamp))
        lines.append(f"{model.label}: {status} (resets in {reset})")
    return lines


def snapshot_to_dict(snapshot: QuotaSnapshot) -> Dict[str, Any]:
    credits = snapshot.prompt_credits
    return {
        "timestamp": snapshot.timestamp,
        "plan_name": snapshot.plan_name,
        "prompt_credits": None
        if credits is None
        else {
            "available": credits.available,
            "monthly": credits.monthly,
            "used_percentage": credits.used_percentage,
            "remaining_percentage": credits.remaining_percentage,
        },
        "models": [
            {
                "label": model.label,
                "model_id": model.model_id,
                "remaining_fraction": model.remaining_fraction,
                "remaining_percentage": model.remaining_percentage,
                "is_exhausted": model.is_exhausted,
                "reset_time": model.reset_time,
            }
            for model in snapshot.models
        ],
    }


def _log_snapshot(snapshot: QuotaSnapshot) -> None:
    for line in describe_snapshot(snapshot):
        logger.info(line)


def _log_retry(info: RetryInfo) -> None:
    logger.warning("Fetch failed; retry %d of %d scheduled", info.attempt, info.max_attempts)


def _log_fetch_error(error: BaseException) -> None:
    logger.error("Polling stopped after repeated failures: %s", error)


async def run_once(engine: QuotaEngine) -> int:
    """Detect, fetch one snapshot and print it as JSON."""
    try:
        if await engine.detect_port() is None:
            logger.error("Language server not found")
            return 1
        snapshot = await engine.fetch_quota_data()
        if snapshot is None:
            return 1
        sys.stdout.write(orjson.dumps(snapshot_to_dict(snapshot), option=orjson.OPT_INDENT_2).decode() + "\n")
        return 0
    finally:
        await engine.dispose()


async def run_forever(engine: QuotaEngine) -> None:
    engine.bus.on(EventType.FETCH_SUCCESS, _log_snapshot, name="cli.snapshot")
    engine.bus.on(EventType.RETRY, _log_retry, name="cli.retry")
    engine.bus.on(EventType.FETCH_ERROR, _log_fetch_error, name="cli.fetch_error")
    try:
        while await engine.start() is None:
            delay = engine.config.poll_interval_seconds
            logger.warning("Language server not found; retrying detection in %.0fs", delay)
            await asyncio.sleep(delay)
        await asyncio.Event().wait()
    finally:
        await engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quota-watcher", description="Watch model quota of the local language server")
    parser.add_argument("--once", action="store_true", help="Fetch a single snapshot, print it as JSON and exit")
    parser.add_argument("--interval", type=float, help="Polling interval in seconds (minimum 10)")
    parser.add_argument(
        "--api-method",
        choices=[method.value for method in ApiMethod],
        help="RPC used to read quota data",
    )
    parser.add_argument("--allow-http-fallback", action="store_true", help="Permit plaintext retry on TLS mismatch")
    parser.add_argument("--log-file", action="store_true", help=f"Also log to logs/{SERVICE_NAME}.log")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def apply_arguments(config: WatcherConfig, args: argparse.Namespace) -> WatcherConfig:
    changes: Dict[str, Any] = {}
    if args.interval is not None:
        changes["poll_interval_seconds"] = clamp_poll_interval(args.interval)
    if args.api_method:
        changes["api_method"] = ApiMethod(args.api_method)
    if args.allow_http_fallback:
        changes["allow_http_fallback"] = True
    return config.with_overrides(**changes) if changes else config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = apply_arguments(load_watcher_config(), args)
    except ConfigurationError as exc:
        sys.stderr.write(f"Configuration error: {exc}\n")
        return 2

    setup_logging(SERVICE_NAME if args.log_file else None, debug=args.debug)
    engine = QuotaEngine.create(config)

    if args.once:
        return asyncio.run(run_once(engine))

    try:
        asyncio.run(run_forever(engine))
    except KeyboardInterrupt:  # Expected exception in operation  # policy_guard: allow-silent-handler
        logger.info("%s interrupted by user", SERVICE_NAME)
    return 0


if __name__ == "__main__":
    sys.exit(main())
