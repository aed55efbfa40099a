"""Run rule lines against a mail store."""

import logging
from typing import Iterable, Optional

from .config import IMAPConfig, RunConfig
from .engine.cache import MessageCache
from .engine.dispatcher import run_line
from .engine.selection import SessionContext
from .imap.client import IMAPClient
from .logging_format import console

logger = logging.getLogger(__name__)


def run_rules(
    store,
    rules: Iterable[str],
    source: str,
    dry_run: bool = False,
    use_cache: bool = True,
) -> SessionContext:
    """Run rule lines in order on a fresh context bound to ``store``."""
    with MessageCache(store, enabled=use_cache) as cache:
        ctx = SessionContext(store=store, cache=cache, dry_run=dry_run)
        for line in rules:
            console.rule_header(source, line)
            run_line(ctx, line)
            if not dry_run:
                console.summary(ctx.folder, len(ctx.ids))
        if use_cache:
            logger.debug(f"Message cache: {cache.hits} hit(s), {cache.misses} miss(es)")
    return ctx


class RuleRunner:
    """Connects to the server for a rule source and runs its lines."""

    def __init__(self, run_config: RunConfig):
        self.run_config = run_config

    def run(self, imap_config: IMAPConfig, rules: list[str], source: str) -> Optional[SessionContext]:
        if not rules:
            logger.warning(f"No rules to run from {source}")
            return None

        if self.run_config.dry_run:
            # Nothing is sent to the server in dry-run mode
            return run_rules(None, rules, source, dry_run=True)

        with IMAPClient(imap_config) as store:
            return run_rules(
                store, rules, source, use_cache=self.run_config.use_cache
            )
