"""Command-line interface for the file sender."""

import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from .config.config_manager import ConfigManager
from .core.agent import FileSenderAgent
from .core.models import AgentSettings
from .utils.formatters import format_file_size
from .utils.log_rotation import LogRotator, RotatingLogHandler, RotationScheduler, rotate_on_startup


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str, settings: AgentSettings) -> RotatingLogHandler:
    """Set up console and rotating file logging.

    A leftover log that is too big or from an earlier day is archived before
    the file handler opens it.

    Returns:
        The rotating file handler, for the periodic rotation check.
    """
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    rotator = LogRotator(settings.log_dir, settings.log_file, settings.max_log_bytes)
    startup_messages = rotate_on_startup(rotator)

    file_handler = RotatingLogHandler(rotator)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    for message in startup_messages:
        logger.info(message)

    return file_handler


def create_directories(settings: AgentSettings) -> None:
    """Create the send, archive and log directories.

    Raises:
        OSError: If a directory cannot be created.
    """
    for directory in (settings.send_dir, settings.archive_dir, settings.log_dir):
        Path(directory).mkdir(parents=True, exist_ok=True)


def install_signal_handlers(agent: FileSenderAgent) -> None:
    logger = logging.getLogger(__name__)

    def handle_signal(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        agent.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def _load_settings(config_path: Optional[str]) -> Tuple[ConfigManager, AgentSettings]:
    config_manager = ConfigManager(config_path)
    config_manager.load_config()
    return config_manager, config_manager.get_agent_settings()


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file (default: config.yaml)')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (overrides the config file)')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str]):
    """File Sender - upload files dropped into a directory and archive them."""

    # Ensure context exists
    ctx.ensure_object(dict)

    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level


@cli.command()
@click.pass_context
def run(ctx):
    """Watch the send directory and upload files until interrupted."""
    try:
        config_manager, settings = _load_settings(ctx.obj.get('config_path'))
    except (ValueError, KeyError, TypeError) as e:
        click.echo(f"Error loading the configuration: {e}", err=True)
        sys.exit(1)

    try:
        create_directories(settings)
    except OSError as e:
        click.echo(f"Error creating directories: {e}", err=True)
        sys.exit(1)

    try:
        file_handler = setup_logging(ctx.obj.get('log_level') or settings.log_level, settings)
    except (OSError, ValueError) as e:
        click.echo(f"Error opening the log file: {e}", err=True)
        sys.exit(1)

    logger = logging.getLogger(__name__)
    for message in config_manager.messages:
        logger.info(message)

    scheduler = RotationScheduler(file_handler, settings.rotation_check_interval)
    scheduler.start()

    logger.info("Starting the file transfer program...")
    logger.info(f"Server address in use: {settings.endpoint}")

    agent = FileSenderAgent(settings)
    install_signal_handlers(agent)
    try:
        agent.run()
    finally:
        scheduler.stop()
        logger.info("Terminating the file transfer program...")


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate the configuration file, creating or completing it if needed."""
    try:
        config_manager, settings = _load_settings(ctx.obj.get('config_path'))
    except (ValueError, KeyError, TypeError) as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)

    for message in config_manager.messages:
        click.echo(f"   • {message}")

    click.echo("✅ Configuration loaded successfully")

    click.echo(f"\n📊 Configuration Summary:")
    click.echo(f"   Endpoint: {settings.endpoint}")
    click.echo(f"   User: {settings.username}")
    if settings.use_https:
        click.echo(f"   Client certificate: {settings.cert_file} / {settings.key_file}")
    click.echo(f"   Send directory: {settings.send_dir}")
    click.echo(f"   Archive directory: {settings.archive_dir}")
    click.echo(f"   Log file: {Path(settings.log_dir) / settings.log_file}")
    click.echo(f"   Log rotation size: {format_file_size(settings.max_log_bytes)}")
    click.echo(f"   Workers: {settings.num_workers}")
    click.echo(f"   Stability window: {settings.stability_seconds:g}s, poll every {settings.poll_interval:g}s")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
