"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Sequence

from .agents import ClaudeCli, SessionTranscript
from .chat_adapters.discord_adapter import DiscordAdapter
from .core import Config, ConfigError, Router, load_config
from .core.config import resolve_config_dir
from .core.structure import StructureStore, list_repositories
from .github import GitHubManager

LOGGER = logging.getLogger(__name__)


def cli(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        prog="guildbridge",
        description="GuildBridge - Discord bot bridging a server to Claude CLI and GitHub",
    )
    parser.add_argument(
        "--config-dir",
        help="Directory holding .env, settings.yaml and discord-structure.json",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("run", help="Start the bot (default)")
    subparsers.add_parser("check", help="Validate configuration and print a summary")

    args = parser.parse_args(argv)
    _configure_logging()

    if args.command == "check":
        return _check(args.config_dir)

    try:
        asyncio.run(_run_async(args.config_dir))
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user")
        return 130
    return 0


def run() -> None:
    cli()


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _apply_log_level() -> None:
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    logging.getLogger().setLevel(log_level)


def _check(config_dir: str | Path | None) -> int:
    try:
        config = load_config(config_dir)
        repos = list_repositories(StructureStore(config.structure_path).load())
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1
    _apply_log_level()

    print(f"Config directory: {config.config_dir}")
    print(f"GitHub: {'configured' if config.github_token else 'token missing'} (owner: {config.github_owner or '-'})")
    print(f"Claude CLI: {' '.join(config.ai_command)} (timeout {config.ai_timeout:g}s)")
    print(f"Privileged roles: {', '.join(config.privileged_roles) or '-'}")
    print(f"Repository categories: {len(repos)}")
    for repo in repos:
        print(f"  - {repo.name} ({repo.prefix}-*, {'private' if repo.private else 'public'})")
    return 0


def build_router(config: Config) -> Router:
    transcript = SessionTranscript(config.transcript_path) if config.transcript_path else None
    claude = ClaudeCli(
        config.ai_command,
        timeout=config.ai_timeout,
        preamble=config.ai_preamble,
        transcript=transcript,
    )
    github_manager = GitHubManager(config.github_token, config.github_owner)
    if not github_manager.is_configured():
        LOGGER.warning("GITHUB_TOKEN or GITHUB_OWNER missing; README and issue commands will fail")
    return Router(config, github_manager=github_manager, claude=claude)


async def _run_async(config_dir: str | Path | None) -> None:
    resolved_dir = resolve_config_dir(config_dir)
    LOGGER.info("Using config directory: %s", resolved_dir)

    config: Config = load_config(resolved_dir)
    _apply_log_level()

    router = build_router(config)
    discord_adapter = DiscordAdapter(config.discord_token, router)
    router.bind_adapter(discord_adapter)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _request_shutdown() -> None:
        LOGGER.info("Shutdown requested")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown)
        except NotImplementedError:
            # Windows event loops do not support signal handlers.
            pass

    discord_task = asyncio.create_task(discord_adapter.start())
    stop_task = asyncio.create_task(stop_event.wait())
    LOGGER.info("GuildBridge started")

    done, _ = await asyncio.wait({discord_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    stop_task.cancel()
    await discord_adapter.stop()
    if discord_task in done:
        # Surfaces login failures and gateway errors.
        discord_task.result()
    else:
        await discord_task
    LOGGER.info("Shutdown complete")


if __name__ == "__main__":
    raise SystemExit(cli())
