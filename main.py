"""CLI entrypoint: relay the Rebble app catalog to the companion device."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from dotenv import load_dotenv

from channels import LoggingChannel, MessageChannel, WebhookChannel
from config import RelayConfig, load_config
from inbox import CompanionInbox
from relay import FetchCycle


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Relay the Rebble app catalog to a companion device")
    parser.add_argument(
        "--channel",
        choices=["log", "webhook", "inbox"],
        default="webhook",
        help=(
            "Outbound channel. 'webhook' (default): POST each record to COMPANION_WEBHOOK_URL. "
            "'inbox': relay into an in-process companion inbox. 'log': log records only."
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only log what would be sent (same as --channel log)",
    )
    parser.add_argument("--url", default=None, help="Override the catalog endpoint URL")
    return parser.parse_args(argv)


def build_channel(name: str, config: RelayConfig) -> MessageChannel:
    if name == "log":
        return LoggingChannel()
    if name == "inbox":
        return CompanionInbox(capacity=config.inbox_capacity)
    if not config.webhook_url:
        raise RuntimeError("COMPANION_WEBHOOK_URL environment variable is required for the webhook channel")
    return WebhookChannel(config.webhook_url, timeout=config.request_timeout_seconds)


def run(config: RelayConfig, channel: MessageChannel) -> bool:
    """Run one fetch cycle to completion and report the outcome."""
    cycle = FetchCycle(channel, config=config)
    ok = cycle.run()
    logging.info(
        "Fetch cycle %s. sent=%s failed=%s",
        "complete" if ok else "failed",
        cycle.sent_count,
        cycle.failed_count,
    )
    if isinstance(channel, CompanionInbox):
        glance = channel.glance()
        if glance is None:
            logging.info("Inbox progress=%s%%, glance not updated", channel.progress())
        else:
            logging.info(
                "Inbox progress=%s%% glance=%r expires_at=%s",
                channel.progress(),
                glance.message,
                glance.expires_at.isoformat(),
            )
    return ok


def main(argv: list[str] | None = None) -> int:
    """Initialize config and execute one fetch cycle (the 'ready' trigger)."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    config = load_config()
    if args.url:
        config = dataclasses.replace(config, api_url=args.url)

    channel = build_channel("log" if args.dry_run else args.channel, config)
    return 0 if run(config, channel) else 1


if __name__ == "__main__":
    sys.exit(main())
