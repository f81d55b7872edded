"""
Federation gateway interface.

The gateway is the only component that talks to the servers. It resolves
logical resources into per-server OMOP CDM databases, binds fetched tables to
symbols in each server's workspace and runs merges server-side. Every call is
one logical round trip to the whole federation; row-level data never leaves a
server through this interface, only catalog metadata does.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

import pandas as pd

from omophelper.core.logging import get_logger

logger = get_logger(__name__)

# A single resource identifier for every server, or one per server name
ResourceSpec = Union[str, Mapping[str, str]]


class FederationGateway(ABC):
    """
    Abstract base class for federation gateways.
    Defines the interface the helper consumes.
    """

    def __init__(self, gateway_id: str = "federation"):
        """Initialize gateway."""
        self.gateway_id = gateway_id
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self._resources: Dict[str, str] = {}

    @property
    @abstractmethod
    def servers(self) -> List[str]:
        """Ordered names of the servers in the federation."""
        pass

    @abstractmethod
    def open(self, resources: Dict[str, str]) -> None:
        """
        Bind every server to its OMOP CDM resource.

        Args:
            resources: Mapping of server name -> resource identifier
        """
        pass

    @abstractmethod
    def get(
        self,
        table: str,
        symbol: str,
        column_filter: Optional[Sequence[str]] = None,
        concept_filter: Optional[Sequence[int]] = None,
        person_filter: Optional[str] = None,
        merge_column: Optional[str] = None,
        drop_na: bool = False,
    ) -> None:
        """
        Fetch a filtered table and bind it to a symbol on every server.

        Args:
            table: OMOP CDM table name
            symbol: Workspace symbol receiving the table
            column_filter: Columns to keep (None keeps all)
            concept_filter: Concept ids to keep (None keeps all)
            person_filter: Symbol whose subjects restrict the rows
            merge_column: Column the table will later be merged on
            drop_na: Drop columns that are entirely empty

        Raises:
            EmptyResultError: If filtering leaves a server with no rows
            RemoteOperationError: If the fetch fails on any server
        """
        pass

    @abstractmethod
    def tables(self) -> Dict[str, Set[str]]:
        """
        List the tables available on every server.

        Returns:
            Mapping of server name -> table names
        """
        pass

    @abstractmethod
    def columns(self, table: str) -> Dict[str, Set[str]]:
        """
        List the columns of a table on every server that has it.

        Returns:
            Mapping of server name -> column names; servers without the table are absent
        """
        pass

    @abstractmethod
    def concepts(self, table: str) -> Dict[str, pd.DataFrame]:
        """
        List the concepts observed in a table on every server that has it.

        Returns:
            Mapping of server name -> DataFrame with concept_id and concept_name
        """
        pass

    @abstractmethod
    def merge(
        self,
        base_symbol: str,
        other_symbol: str,
        link_left: str,
        link_right: str,
        keep_all_left: bool = True,
        keep_all_right: bool = False,
        suffixes: Tuple[str, str] = (".x", ".y"),
        drop_duplicate_columns: bool = True,
        result_symbol: Optional[str] = None,
    ) -> None:
        """
        Merge two workspace tables on every server.

        Raises:
            RemoteOperationError: If the merge fails on any server
        """
        pass

    @abstractmethod
    def remove(self, symbol: str) -> None:
        """Remove a symbol from every server; unknown symbols are ignored."""
        pass

    @abstractmethod
    def exists(self, symbol: str) -> bool:
        """Check whether a symbol resolves on any server."""
        pass

    @property
    def resources(self) -> Dict[str, str]:
        """Resources bound by the last call to open()."""
        return dict(self._resources)

    def __str__(self) -> str:
        """String representation."""
        return f"{self.__class__.__name__}(id={self.gateway_id})"

    def __repr__(self) -> str:
        """Detailed representation."""
        return (
            f"{self.__class__.__name__}("
            f"id={self.gateway_id}, "
            f"servers={self.servers}"
            f")"
        )
