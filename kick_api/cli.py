"""Command-line interface for kick-api."""

import asyncio
import json
import logging
from pathlib import Path

import click

from kick_api.chat import KickChatClient, LiveChatMessage, MaxReconnectAttemptsError, PusherEvent
from kick_api.collector import Collector
from kick_api.config import load_config
from kick_api.models import Config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def _build_client(chatroom: int, cfg: Config) -> KickChatClient:
    logging.getLogger().setLevel(cfg.log_level.upper())
    return KickChatClient(
        chatroom,
        max_reconnect_attempts=cfg.max_reconnect_attempts,
        max_backoff=cfg.max_backoff,
        initial_backoff=cfg.initial_backoff,
        url=cfg.relay_url,
        connect_timeout=cfg.connect_timeout,
    )


def _run(client: KickChatClient) -> None:
    try:
        asyncio.run(client.start())
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, stopping")
    except MaxReconnectAttemptsError as e:
        raise click.ClickException(str(e))


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """kick-api - Live chat client for Kick chatrooms."""
    pass


@cli.command()
@click.option("--chatroom", type=int, required=True, help="Chatroom ID to watch")
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    default="config.yaml",
    help="Path to config YAML file",
)
@click.option("--raw", is_flag=True, help="Print every channel event instead of chat lines")
def watch(chatroom: int, config: Path, raw: bool):
    """Print live chat of a chatroom until interrupted."""
    cfg = load_config(config)
    client = _build_client(chatroom, cfg)

    if raw:
        @client.event
        def on_event(event: PusherEvent):
            click.echo(f"[{event.event}] {event.data}")
    else:
        @client.event
        def on_chat(message: LiveChatMessage):
            prefix = ""
            if message.metadata and message.metadata.original_sender:
                prefix = f"@{message.metadata.original_sender.username} "
            click.echo(f"{message.sender.username}: {prefix}{message.content}")

    _run(client)


@cli.command()
@click.option("--chatroom", type=int, required=True, help="Chatroom ID to collect from")
@click.option(
    "--out",
    type=click.Path(path_type=Path),
    default=None,
    help="Output directory (defaults to outdir/<chatroom> from config)",
)
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    default="config.yaml",
    help="Path to config YAML file",
)
def collect(chatroom: int, out: Path, config: Path):
    """Collect chat messages into events.jsonl until interrupted."""
    cfg = load_config(config)
    if out is None:
        out = Path(cfg.outdir) / str(chatroom)

    collector = Collector(chatroom, out, client=_build_client(chatroom, cfg))

    try:
        asyncio.run(collector.start())
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, stopping collector")
    except MaxReconnectAttemptsError as e:
        logger.error(str(e))

    report = collector.generate_report()
    click.echo(json.dumps(report, indent=2))


if __name__ == "__main__":
    cli()
