"""Main entry point for the upgit CLI."""

from dotenv import load_dotenv
load_dotenv()

import sys
import argparse
from typing import List, Optional

from .config import Config
from .core.logger import setup_logging
from .core.aggregator import ResultAggregator
from .core.classifier import RepositoryClassifier
from .core.discovery import discover_targets
from .core.dispatcher import TaskDispatcher, FatalRepositoryError, DEFAULT_MAX_CONCURRENT
from .core.reporter import Reporter
from .utils.filters import RepoFilter
from .utils.git import GitClient
from .utils.progress import ProgressTracker


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog='upgit',
        description='Pull every git repository inside one or more container directories, in parallel',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Update every repository under ~/code
  upgit ~/code

  # Several containers, fewer concurrent pulls
  upgit ~/code ~/work --workers 8

  # Keep going when a single repository fails
  upgit ~/code --keep-going --timeout 120

  # Only repositories whose names match a pattern
  upgit ~/code --pattern "my-*" --exclude "*-archive"

Environment:
  UPGIT_GIT_DIRS, UPGIT_MAX_CONCURRENT, UPGIT_REMOTE, UPGIT_TIMEOUT,
  UPGIT_KEEP_GOING and UPGIT_LOG_DIR are read from the environment or a
  .env file. Command line arguments take precedence.
        """
    )

    parser.add_argument(
        'git_dirs',
        nargs='*',
        metavar='CONTAINER',
        help='Directory whose immediate sub-directories are repositories (overrides UPGIT_GIT_DIRS)'
    )

    # Execution control
    exec_group = parser.add_argument_group('execution control')
    exec_group.add_argument(
        '--workers',
        type=int,
        metavar='N',
        help=f'Maximum concurrent repositories (default: {DEFAULT_MAX_CONCURRENT}, overrides UPGIT_MAX_CONCURRENT)'
    )
    exec_group.add_argument(
        '--remote',
        metavar='NAME',
        help='Preferred remote to pull from (default: origin, overrides UPGIT_REMOTE)'
    )
    exec_group.add_argument(
        '--timeout',
        type=float,
        metavar='SECONDS',
        help='Timeout for each git command (default: none, overrides UPGIT_TIMEOUT)'
    )
    exec_group.add_argument(
        '--keep-going',
        action='store_true',
        help='Report unexpected errors per repository instead of aborting the run'
    )

    # Repository filtering
    filter_group = parser.add_argument_group('repository filtering')
    filter_group.add_argument(
        '--pattern',
        action='append',
        dest='patterns',
        metavar='GLOB',
        help='Only include directories matching the pattern (can be repeated)'
    )
    filter_group.add_argument(
        '--exclude',
        action='append',
        dest='excludes',
        metavar='GLOB',
        help='Exclude directories matching the pattern (can be repeated)'
    )

    # Output
    output_group = parser.add_argument_group('output')
    output_group.add_argument(
        '--no-progress',
        action='store_true',
        help='Do not draw the progress bar'
    )
    output_group.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show per-repository log messages on the console'
    )
    output_group.add_argument(
        '--log-dir',
        metavar='DIR',
        help='Directory for log files (default: ./logs, overrides UPGIT_LOG_DIR)'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.from_env_and_args(
            git_dirs=args.git_dirs,
            max_concurrent=args.workers,
            remote_name=args.remote,
            timeout=args.timeout,
            keep_going=args.keep_going,
            log_dir=args.log_dir
        )
    except ValueError as e:
        parser.print_usage(sys.stderr)
        print(f"upgit: error: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(log_dir=config.log_dir, verbose=args.verbose)

    try:
        logger.info("Configuration loaded")
        logger.info(f"  Containers: {', '.join(config.git_dirs)}")
        logger.info(f"  Max concurrent: {config.max_concurrent}")
        logger.info(f"  Remote: {config.remote_name}")
        logger.info(f"  Timeout: {config.timeout}")
        logger.info(f"  Keep going: {config.keep_going}")

        repo_filter = RepoFilter(patterns=args.patterns, excludes=args.excludes)
        targets = discover_targets(config.git_dirs, repo_filter)

        if not targets:
            logger.warning("No repositories found")
            return 0

        print(f"upgitting {len(targets)} repos")

        classifier = RepositoryClassifier(
            GitClient(timeout=config.timeout),
            remote_name=config.remote_name
        )
        dispatcher = TaskDispatcher(
            classifier.classify,
            max_concurrent=config.max_concurrent,
            keep_going=config.keep_going
        )
        progress = ProgressTracker(len(targets), enabled=not args.no_progress)
        aggregator = ResultAggregator(expected=len(targets))

        try:
            report = aggregator.consume(dispatcher.run(targets), on_result=progress.update)
        finally:
            progress.finish()

        Reporter().print(report)

        # Failures and unknown outcomes need attention
        return 1 if report.has_anomalies else 0

    except FatalRepositoryError as e:
        logger.error(f"Aborting run: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("\nOperation cancelled by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
