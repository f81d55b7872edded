"""
Ephemeral symbol management for transient remote tables.
"""

import itertools
from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import uuid4

from omophelper.core.logging import get_logger
from omophelper.federation.gateway import FederationGateway

logger = get_logger(__name__)


class SymbolManager:
    """
    Issues workspace symbols that are unique within a session.

    Symbols look like ``<prefix>.<token>.<n>``: the token is drawn once per
    manager and ``n`` only grows, so a manager never repeats itself. A candidate
    that already resolves on a server is skipped.
    """

    def __init__(self, gateway: FederationGateway, prefix: str = "dsOH", token: Optional[str] = None):
        """Initialize symbol manager."""
        self.gateway = gateway
        self.prefix = prefix
        self.token = token or uuid4().hex[:12]
        self._counter = itertools.count(1)
        self.logger = get_logger(__name__)

    def issue(self) -> str:
        """
        Issue a fresh symbol.

        Returns:
            Symbol not bound on any server
        """
        while True:
            symbol = f"{self.prefix}.{self.token}.{next(self._counter)}"
            if not self.gateway.exists(symbol):
                return symbol
            self.logger.warning(f"Symbol {symbol} already bound remotely, skipping")

    def release(self, symbol: str) -> None:
        """Remove a symbol from every server."""
        self.gateway.remove(symbol)
        self.logger.debug(f"Released symbol {symbol}")

    @contextmanager
    def ephemeral(self) -> Iterator[str]:
        """
        Scope a symbol to a block.

        The symbol is removed when the block exits, whether it returns or
        raises. A failed removal during an error is logged and the original
        error keeps propagating.
        """
        symbol = self.issue()
        try:
            yield symbol
        except BaseException:
            try:
                self.release(symbol)
            except Exception as e:
                self.logger.error(f"Failed to release symbol {symbol}: {e}")
            raise
        else:
            self.release(symbol)
