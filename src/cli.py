"""Click CLI for running and inspecting the webhook bridge."""

from __future__ import annotations

import json
import logging

import click
import uvicorn

from src.audit.logger import AuditLogger
from src.config import VERSION, BridgeConfig, ConfigError, is_valid_port, load_config
from src.logging_config import setup_logging
from src.server.app import create_app

logger = logging.getLogger(__name__)


def _load_or_exit(env_file: str) -> BridgeConfig:
    try:
        return load_config(env_file=env_file)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


def _log_banner(config: BridgeConfig) -> None:
    logger.info("Buildkite-Forgejo Webhook Bridge v%s", VERSION)
    logger.info("Listening on port %s", config.listen_port)
    logger.info("Buildkite organization: %s", config.org_slug)
    logger.info("Verbose logging: %s", config.verbose)
    logger.info(
        "Configure Forgejo webhook to: http://your-host:%s/webhook/<pipeline-slug>",
        config.listen_port,
    )


@click.group()
@click.version_option(VERSION, prog_name="forgekite")
def cli() -> None:
    """Forgejo to Buildkite webhook bridge."""


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", default=None, help="Listen port (overrides WEBHOOK_PORT).")
@click.option("--env-file", default=".env", help="Dotenv file loaded before the environment.")
@click.option("--log-level", default=None, help="Logging level (overrides LOG_LEVEL).")
def serve(host: str, port: str | None, env_file: str, log_level: str | None) -> None:
    """Run the bridge HTTP server."""
    config = _load_or_exit(env_file)
    if port is not None:
        if not is_valid_port(port):
            raise click.BadParameter("must be a port number (1-65535)", param_hint="--port")
        config = config.model_copy(update={"listen_port": port})

    setup_logging(log_level)
    _log_banner(config)
    audit_logger = None
    if config.audit_log_path:
        try:
            audit_logger = AuditLogger.from_env(config.audit_log_path)
        except ConfigError as e:
            raise click.ClickException(str(e)) from e
    app = create_app(config, audit_logger=audit_logger)
    uvicorn.run(app, host=host, port=int(config.listen_port), log_config=None)


@cli.command("config")
@click.option("--env-file", default=".env", help="Dotenv file loaded before the environment.")
def show_config(env_file: str) -> None:
    """Print the effective configuration (token redacted)."""
    config = _load_or_exit(env_file)
    click.echo(json.dumps(config.describe(), indent=2))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
