"""
Session state shared by the helper operations.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from omophelper.core.config import Settings, get_settings
from omophelper.core.exceptions import ConfigurationError
from omophelper.core.logging import LogContext, get_logger
from omophelper.federation.gateway import FederationGateway, ResourceSpec
from omophelper.federation.resources import resolve_resources
from omophelper.federation.symbols import SymbolManager

logger = get_logger(__name__)


@dataclass
class Session:
    """
    State of one helper session.

    Attributes:
        gateway: Federation gateway with its resources opened
        symbol: Symbol of the per-server base table
        settings: Settings in effect for the session
        symbols: Issuer of ephemeral symbols
    """
    gateway: FederationGateway
    symbol: str
    settings: Settings = field(default_factory=get_settings)
    symbols: Optional[SymbolManager] = None

    def __post_init__(self):
        if not self.symbol:
            raise ConfigurationError("The base table symbol cannot be empty")
        if self.symbols is None:
            self.symbols = SymbolManager(self.gateway, prefix=self.settings.symbol_prefix)

    @property
    def servers(self) -> List[str]:
        """Servers of the federation."""
        return self.gateway.servers

    @property
    def link_column(self) -> str:
        """Default link column between the base table and satellite tables."""
        return self.settings.link_column

    def close(self) -> None:
        """Remove the base table from every server."""
        self.gateway.remove(self.symbol)
        logger.info(f"Closed session for {self.symbol}")


def open_session(
    gateway: FederationGateway,
    resource: ResourceSpec,
    symbol: str,
    person_columns: Optional[Sequence[str]] = None,
    person_filter: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Session:
    """
    Open a session and seed its base table from the person table.

    Args:
        gateway: Federation gateway
        resource: Resource identifier, or mapping of server name -> identifier
        symbol: Symbol receiving the base table on every server
        person_columns: Person columns to keep (None keeps all)
        person_filter: Existing symbol holding the subjects to keep
        settings: Settings override

    Returns:
        Session bound to the seeded base table
    """
    session = Session(gateway=gateway, symbol=symbol, settings=settings or get_settings())

    gateway.open(resolve_resources(gateway.servers, resource))

    with LogContext(base_symbol=symbol):
        gateway.get(
            table=session.settings.person_table,
            symbol=symbol,
            column_filter=person_columns,
            person_filter=person_filter,
            drop_na=True,
        )
        logger.info(f"Seeded base table from {session.settings.person_table}", servers=gateway.servers)

    return session
