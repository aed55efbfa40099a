"""mailrules entry point."""

import argparse
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from . import __version__
from .config import ConfigError, load_imap_config, load_run_config, setup_logging
from .engine.selection import SelectionError
from .imap.client import IMAPError
from .logging_format import console
from .rulefile import load_rule_file
from .runner import RuleRunner


def add_connection_args(parser: argparse.ArgumentParser) -> None:
    """Add server connection arguments."""
    parser.add_argument("-s", "--server", help="IMAP server host (IMAP_HOST)")
    parser.add_argument(
        "-p", "--port", type=int, help="IMAP server port (IMAP_PORT, default 993)"
    )
    parser.add_argument("-u", "--user", help="Username (IMAP_USER)")
    parser.add_argument("-P", "--password", help="Password (IMAP_PASSWORD)")
    tls = parser.add_mutually_exclusive_group()
    tls.add_argument(
        "--no-ssl", dest="use_ssl", action="store_const", const=False,
        help="Connect without SSL"
    )
    tls.add_argument(
        "--starttls", action="store_true", help="Upgrade a plain connection with STARTTLS"
    )


def add_execution_args(parser: argparse.ArgumentParser) -> None:
    """Add rule execution arguments."""
    parser.add_argument(
        "-e", "--rule", dest="rules", action="append", default=[], metavar="LINE",
        help="Run a rule line directly, e.g. 'folder:INBOX subject:hello dump'"
    )
    parser.add_argument(
        "rule_files", nargs="*", metavar="RULEFILE", help="Rule files to run"
    )
    parser.add_argument(
        "-n", "--dry-run", action="store_true",
        help="Report the resolved commands without running them"
    )
    parser.add_argument(
        "--no-cache", dest="use_cache", action="store_false",
        help="Fetch message content from the server on every access"
    )


def add_logging_args(parser: argparse.ArgumentParser) -> None:
    """Add logging arguments."""
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose logs"
    )
    parser.add_argument("--log-dir", help="Also write logs to this directory (LOG_DIR)")


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""
    parser = argparse.ArgumentParser(
        prog="mailrules",
        description="Select messages in an IMAP mailbox with rules and act on them.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    add_connection_args(parser)
    add_execution_args(parser)
    add_logging_args(parser)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    # Load .env file if present
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.rules and not args.rule_files:
        parser.error("no rules given, use --rule or pass a rule file")

    try:
        run_config = load_run_config(
            dry_run=args.dry_run,
            use_cache=args.use_cache,
            verbose=args.verbose,
            log_dir=args.log_dir,
        )
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(run_config.log_level, run_config.log_dir, run_config.log_retention_days)
    if run_config.dry_run:
        console.status("Dry run: no changes will be made")

    runner = RuleRunner(run_config)
    connection = dict(
        server=args.server,
        user=args.user,
        password=args.password,
        port=args.port,
        use_ssl=args.use_ssl,
        starttls=args.starttls,
    )

    try:
        if args.rules:
            runner.run(load_imap_config(**connection), args.rules, "command line")

        for path in args.rule_files:
            rule_file = load_rule_file(path)
            imap_config = load_imap_config(fallback=rule_file.credentials, **connection)
            runner.run(imap_config, rule_file.rules, path)

    except ConfigError as e:
        console.error(f"Configuration error: {e}")
        return 1
    except SelectionError as e:
        console.error(str(e))
        return 1
    except IMAPError as e:
        console.error(f"IMAP error: {e}")
        return 1

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
