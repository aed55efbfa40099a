"""Configuration management for mailrules."""

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Mapping, Optional


@dataclass
class IMAPConfig:
    """IMAP server configuration."""

    host: str
    port: int
    user: str
    password: str
    use_ssl: bool  # True=SSL, False=plain or STARTTLS
    starttls: bool = False


@dataclass
class RunConfig:
    """Execution options for one invocation of the rule engine."""

    dry_run: bool
    use_cache: bool
    log_level: str
    log_dir: Optional[str]
    log_retention_days: int


class ConfigError(Exception):
    """Configuration validation error."""

    pass


def _get_optional(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get optional environment variable with default."""
    return os.environ.get(key, default)


def _get_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Invalid integer value for {key}: {value}")


def _get_optional_bool(key: str) -> Optional[bool]:
    """Get optional boolean environment variable."""
    value = os.environ.get(key)
    if value is None:
        return None
    return value.lower() in ("true", "1", "yes")


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


def load_imap_config(
    server: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    port: Optional[int] = None,
    use_ssl: Optional[bool] = None,
    starttls: bool = False,
    fallback: Optional[Mapping[str, str]] = None,
) -> IMAPConfig:
    """Resolve connection settings.

    Explicit arguments win over environment variables, which win over the
    ``fallback`` mapping (credential lines read from a rule file).
    """
    fallback = fallback or {}

    host = _first(server, _get_optional("IMAP_HOST"), fallback.get("server"))
    username = _first(user, _get_optional("IMAP_USER"), fallback.get("username"))
    secret = _first(
        password, _get_optional("IMAP_PASSWORD"), fallback.get("password")
    )

    for key, value in (("server", host), ("username", username), ("password", secret)):
        if not value:
            raise ConfigError(f"Missing required credential: {key}")

    if port is None:
        port = _get_int("IMAP_PORT", 993)

    if use_ssl is None:
        use_ssl = _get_optional_bool("IMAP_SSL")
    starttls = starttls or bool(_get_optional_bool("IMAP_STARTTLS"))
    if use_ssl is None:
        # Port 993 = SSL, anything else plain (optionally upgraded by STARTTLS)
        use_ssl = port == 993 and not starttls
    if use_ssl and starttls:
        raise ConfigError("SSL and STARTTLS are mutually exclusive")

    return IMAPConfig(
        host=host,
        port=port,
        user=username,
        password=secret,
        use_ssl=use_ssl,
        starttls=starttls,
    )


def load_run_config(
    dry_run: bool = False,
    use_cache: bool = True,
    verbose: bool = False,
    log_dir: Optional[str] = None,
) -> RunConfig:
    """Resolve execution and logging options."""
    log_level = "DEBUG" if verbose else _get_optional("LOG_LEVEL", "INFO")
    return RunConfig(
        dry_run=dry_run,
        use_cache=use_cache,
        log_level=log_level.upper(),
        log_dir=log_dir or _get_optional("LOG_DIR"),
        log_retention_days=_get_int("LOG_RETENTION_DAYS", 3),
    )


def cleanup_old_logs(log_dir: str, days: int) -> None:
    """Delete log files older than N days."""
    cutoff = datetime.now() - timedelta(days=days)
    log_path = Path(log_dir)

    if not log_path.exists():
        return

    for log_file in log_path.glob("*.log*"):
        try:
            mtime = datetime.fromtimestamp(log_file.stat().st_mtime)
            if mtime < cutoff:
                log_file.unlink()
                logging.info(f"Deleted old log: {log_file.name}")
        except OSError as e:
            logging.warning(f"Could not delete {log_file.name}: {e}")


def setup_logging(
    level: str,
    log_dir: Optional[str] = None,
    retention_days: int = 3
) -> None:
    """Configure logging for the application."""
    from logging.handlers import TimedRotatingFileHandler

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    # stdout carries dump and dry-run output, diagnostics go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))
    handlers = [console_handler]

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        cleanup_old_logs(log_dir, retention_days)

        # File handler with daily rotation
        log_file = Path(log_dir) / "mailrules.log"
        file_handler = TimedRotatingFileHandler(
            str(log_file),
            when='midnight',
            interval=1,
            backupCount=retention_days,
            encoding='utf-8',
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setFormatter(logging.Formatter(log_format, date_format))
        handlers.append(file_handler)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)
