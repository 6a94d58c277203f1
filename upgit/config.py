"""Configuration management for upgit."""

import os
from typing import List, Optional
from dataclasses import dataclass, field

from .core.classifier import DEFAULT_REMOTE_NAME
from .core.dispatcher import DEFAULT_MAX_CONCURRENT


def _env_flag(name: str) -> bool:
    return os.getenv(name, '').strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_int(value, source: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{source} must be an integer, got {value!r}")
    if number < 1:
        raise ValueError(f"{source} must be at least 1, got {number}")
    return number


def _parse_timeout(value, source: str) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{source} must be a number of seconds, got {value!r}")
    if seconds <= 0:
        raise ValueError(f"{source} must be positive, got {seconds}")
    return seconds


@dataclass
class Config:
    """Configuration for upgit.

    Merges environment variables with CLI arguments.
    CLI arguments take precedence over environment variables.
    """

    git_dirs: List[str]
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    remote_name: str = DEFAULT_REMOTE_NAME
    timeout: Optional[float] = None
    keep_going: bool = False
    log_dir: str = field(default_factory=lambda: os.path.join(os.getcwd(), 'logs'))

    @classmethod
    def from_env_and_args(
        cls,
        git_dirs: Optional[List[str]] = None,
        max_concurrent: Optional[int] = None,
        remote_name: Optional[str] = None,
        timeout: Optional[float] = None,
        keep_going: bool = False,
        log_dir: Optional[str] = None
    ) -> 'Config':
        """Create config from environment variables and CLI arguments.

        CLI arguments override environment variables.

        Args:
            git_dirs: Container directories (overrides UPGIT_GIT_DIRS)
            max_concurrent: Concurrency cap (overrides UPGIT_MAX_CONCURRENT)
            remote_name: Preferred remote (overrides UPGIT_REMOTE)
            timeout: Per git command timeout in seconds (overrides UPGIT_TIMEOUT)
            keep_going: Isolate unexpected errors per repository (or UPGIT_KEEP_GOING)
            log_dir: Log directory (overrides UPGIT_LOG_DIR)

        Returns:
            Config instance

        Raises:
            ValueError: If required config is missing or invalid
        """
        final_dirs = list(git_dirs or [])
        if not final_dirs:
            env_dirs = os.getenv('UPGIT_GIT_DIRS', '')
            final_dirs = [d.strip() for d in env_dirs.split(',') if d.strip()]

        if not final_dirs:
            raise ValueError(
                "Please pass paths to repository containers as arguments "
                "or set UPGIT_GIT_DIRS (comma separated)"
            )
        final_dirs = [os.path.expanduser(d) for d in final_dirs]

        if max_concurrent is not None:
            final_max = _parse_int(max_concurrent, "--workers")
        elif os.getenv('UPGIT_MAX_CONCURRENT'):
            final_max = _parse_int(os.getenv('UPGIT_MAX_CONCURRENT'), "UPGIT_MAX_CONCURRENT")
        else:
            final_max = DEFAULT_MAX_CONCURRENT

        if timeout is not None:
            final_timeout = _parse_timeout(timeout, "--timeout")
        elif os.getenv('UPGIT_TIMEOUT'):
            final_timeout = _parse_timeout(os.getenv('UPGIT_TIMEOUT'), "UPGIT_TIMEOUT")
        else:
            final_timeout = None

        final_remote = remote_name or os.getenv('UPGIT_REMOTE') or DEFAULT_REMOTE_NAME
        final_log_dir = log_dir or os.getenv('UPGIT_LOG_DIR') or os.path.join(os.getcwd(), 'logs')

        return cls(
            git_dirs=final_dirs,
            max_concurrent=final_max,
            remote_name=final_remote,
            timeout=final_timeout,
            keep_going=keep_going or _env_flag('UPGIT_KEEP_GOING'),
            log_dir=os.path.expanduser(final_log_dir)
        )
