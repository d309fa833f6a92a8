"""
Command-line interface for the load generator.
"""
import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from .client import BatchStatusClient
from .coordinator import WorkerCoordinator
from .exceptions import StatusError
from .models import (
    DEFAULT_BASE_URL,
    DEFAULT_PAYLOAD_SIZE,
    DEFAULT_POLL_INTERVAL,
    LoadConfig,
    WorkerConfig,
    default_workers,
)

logger = logging.getLogger(__name__)

def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: Whether to enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def load_config(config_file: Optional[Path] = None) -> dict:
    """Load configuration from a JSON file.

    Args:
        config_file: Path to config file

    Returns:
        Dictionary of configuration values
    """
    if not config_file:
        return {}

    try:
        with open(config_file) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading config file: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Config file {config_file} must contain a JSON object")
        return {}
    return data

def _parse_workers(entries: List[dict]) -> List[WorkerConfig]:
    if not isinstance(entries, list):
        raise ValueError("workers must be a list")
    workers = []
    for entry in entries:
        try:
            name = entry['name']
            workers.append(WorkerConfig(
                name=name,
                batch_id=entry['batch_id'],
                log_file=Path(entry.get('log_file', f"{name}.log")),
                encrypt=entry.get('encrypt', False),
                deferred=entry.get('deferred', False),
            ))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"invalid worker entry {entry!r}: {e}") from e
    return workers

def build_config(args: argparse.Namespace) -> LoadConfig:
    """Build the run configuration from defaults, config file and flags.

    Args:
        args: Command line arguments

    Returns:
        LoadConfig instance
    """
    config = load_config(args.config)

    workers = default_workers()
    if 'workers' in config:
        workers = _parse_workers(config['workers'])

    def pick(flag: str, key: str, default):
        value = getattr(args, flag, None)
        if value is not None:
            return value
        return config.get(key, default)

    return LoadConfig(
        base_url=pick('base_url', 'base_url', DEFAULT_BASE_URL),
        payload_size=pick('payload_size', 'payload_size', DEFAULT_PAYLOAD_SIZE),
        poll_interval=pick('poll_interval', 'poll_interval', DEFAULT_POLL_INTERVAL),
        request_timeout=pick('timeout', 'request_timeout', None),
        workers=workers,
    )

def handle_run(args: argparse.Namespace) -> int:
    """Handle the run command.

    Args:
        args: Command line arguments

    Returns:
        Process exit status
    """
    config = build_config(args)
    coordinator = WorkerCoordinator(config)

    logger.info(
        f"Starting {len(config.workers)} workers against {config.base_url}: "
        f"{', '.join(w.name for w in config.workers)}"
    )
    results = coordinator.run_all()

    failed = [r for r in results if r.failed]
    for result in failed:
        logger.error(f"Worker {result.name} failed: {result.error}")
    return 1 if failed else 0

def handle_status(args: argparse.Namespace) -> int:
    """Handle the status command.

    Args:
        args: Command line arguments

    Returns:
        Process exit status
    """
    config = build_config(args)
    client = BatchStatusClient(config.base_url, timeout=config.request_timeout)
    try:
        batch = client.fetch(args.batch_id)
    except StatusError as e:
        logger.error(f"Error fetching batch {args.batch_id}: {e}")
        return 1
    finally:
        client.close()

    print(json.dumps(asdict(batch), indent=2))
    return 0

def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Upload random data under postage batches until they are full or expired")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose logging")
    parser.add_argument('-c', '--config', type=Path,
                        help="Path to config file")
    parser.add_argument('-u', '--base-url', type=str,
                        help="Storage node API endpoint")
    parser.add_argument('--timeout', type=float,
                        help="Request timeout in seconds")

    subparsers = parser.add_subparsers(dest='command', required=True)

    # Run command
    run_parser = subparsers.add_parser('run',
                                       help="Upload until every batch is full or expired")
    run_parser.add_argument('-s', '--payload-size', type=int,
                            help="Bytes per upload")
    run_parser.add_argument('-i', '--poll-interval', type=float,
                            help="Seconds between polls while waiting for a usable batch")

    # Status command
    status_parser = subparsers.add_parser('status',
                                          help="Show the state of a batch")
    status_parser.add_argument('batch_id', type=str,
                               help="Postage batch ID")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == 'run':
            code = handle_run(args)
        elif args.command == 'status':
            code = handle_status(args)
        else:
            code = 2
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        code = 2

    sys.exit(code)

if __name__ == '__main__':
    main()
