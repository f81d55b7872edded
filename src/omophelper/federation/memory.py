"""
In-memory federation backed by pandas.

Each server holds its own OMOP CDM databases and its own symbol workspace.
Every operation is computed server by server; frames are never combined
across servers. Intended for tests and local experimentation.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

import pandas as pd

from omophelper.core.exceptions import EmptyResultError, RemoteOperationError
from omophelper.federation.gateway import FederationGateway
from omophelper.helper.columns import table_prefix

# Concept columns that describe provenance rather than the row's concept
_SECONDARY_CONCEPT_TAGS = ("_type_", "_source_", "_status_", "_route_", "_unit_")


def find_concept_column(table: str, columns: Sequence[str]) -> Optional[str]:
    """
    Find the column holding a table's primary concept.

    Args:
        table: OMOP CDM table name
        columns: Columns of the table

    Returns:
        Column name or None if the table carries no concept
    """
    candidate = f"{table_prefix(table)}_concept_id"
    if candidate in columns:
        return candidate

    for column in columns:
        if column.endswith("_concept_id") and not any(tag in column for tag in _SECONDARY_CONCEPT_TAGS):
            return column
    return None


def widen(frame: pd.DataFrame, key: str, concept_column: Optional[str]) -> pd.DataFrame:
    """
    Reshape a table to one row per key value.

    With a concept column, every concept gets its own set of columns named
    ``<column>.<concept_id>`` holding the first record of that concept.
    Without one, the first record per key is kept.
    """
    if concept_column is None:
        return frame.drop_duplicates(subset=[key], keep="first")

    pieces = []
    for concept_id, group in frame.groupby(concept_column, sort=True):
        group = group.drop_duplicates(subset=[key], keep="first")
        group = group.drop(columns=[concept_column]).set_index(key)
        pieces.append(group.add_suffix(f".{concept_id}"))

    if not pieces:
        return frame.drop(columns=[concept_column])

    return pd.concat(pieces, axis=1).rename_axis(key).reset_index()


class InMemoryFederation(FederationGateway):
    """
    Federation gateway keeping every server in process memory.

    Args:
        databases: Mapping of server -> resource -> table -> DataFrame
        link_column: Subject column used for person filters
    """

    def __init__(
        self,
        databases: Mapping[str, Mapping[str, Mapping[str, pd.DataFrame]]],
        link_column: str = "person_id",
        gateway_id: str = "memory",
    ):
        """Initialize in-memory federation."""
        super().__init__(gateway_id)
        self.link_column = link_column
        self._databases = {
            server: {resource: dict(tables) for resource, tables in resources.items()}
            for server, resources in databases.items()
        }
        self._workspaces: Dict[str, Dict[str, pd.DataFrame]] = {
            server: {} for server in self._databases
        }

    @classmethod
    def from_tables(
        cls,
        tables: Mapping[str, Mapping[str, pd.DataFrame]],
        resource: str = "omop",
        **kwargs,
    ) -> "InMemoryFederation":
        """Build a federation exposing one resource per server."""
        return cls({server: {resource: server_tables} for server, server_tables in tables.items()}, **kwargs)

    @property
    def servers(self) -> List[str]:
        """Ordered names of the servers in the federation."""
        return list(self._databases)

    def open(self, resources: Dict[str, str]) -> None:
        """Bind every server to one of its databases."""
        for server, resource in resources.items():
            if server not in self._databases:
                raise RemoteOperationError(f"Unknown server {server}", server)
            if resource not in self._databases[server]:
                raise RemoteOperationError(f"Resource {resource} not found", server)

        self._resources = dict(resources)
        self.logger.info(f"Opened resources on {len(resources)} servers")

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
        """Fetch a filtered table and bind it to a symbol on every server."""
        fetched = {
            server: self._fetch(
                server, table, column_filter, concept_filter, person_filter, merge_column, drop_na
            )
            for server in self.servers
        }

        # Bind only once every server succeeded
        for server, frame in fetched.items():
            self._workspaces[server][symbol] = frame

        self.logger.debug(f"Bound {table} to {symbol}", rows={s: len(f) for s, f in fetched.items()})

    def tables(self) -> Dict[str, Set[str]]:
        """List the tables available on every server."""
        return {server: set(self._database(server)) for server in self.servers}

    def columns(self, table: str) -> Dict[str, Set[str]]:
        """List the columns of a table on the servers that have it."""
        result = {}
        for server in self.servers:
            frame = self._find_table(server, table)
            if frame is not None:
                result[server] = set(frame.columns)
        return result

    def concepts(self, table: str) -> Dict[str, pd.DataFrame]:
        """List the concepts observed in a table on the servers that have it."""
        result = {}
        for server in self.servers:
            frame = self._find_table(server, table)
            if frame is None:
                continue

            concept_column = find_concept_column(table, list(frame.columns))
            if concept_column is None:
                continue

            ids = pd.Series(frame[concept_column].dropna().unique()).astype("int64")
            concepts = pd.DataFrame({"concept_id": ids})
            concepts["concept_name"] = concepts["concept_id"].map(self._concept_names(server))
            result[server] = concepts.sort_values("concept_id").reset_index(drop=True)
        return result

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
        """Merge two workspace tables on every server."""
        result_symbol = result_symbol or base_symbol

        if keep_all_left and keep_all_right:
            how = "outer"
        elif keep_all_left:
            how = "left"
        elif keep_all_right:
            how = "right"
        else:
            how = "inner"

        merged_by_server = {}
        for server in self.servers:
            left = self._symbol(server, base_symbol)
            right = self._symbol(server, other_symbol)

            try:
                merged = pd.merge(
                    left,
                    right,
                    how=how,
                    left_on=link_left,
                    right_on=link_right,
                    suffixes=tuple(suffixes),
                    sort=False,
                    validate="many_to_one" if how == "left" else None,
                )
            except (KeyError, ValueError) as e:
                raise RemoteOperationError(f"Merge failed on {server}: {e}", server) from e

            if drop_duplicate_columns and link_left != link_right:
                right_key = f"{link_right}{suffixes[1]}" if link_right in left.columns else link_right
                merged = merged.drop(columns=[right_key], errors="ignore")

            merged_by_server[server] = merged

        for server, merged in merged_by_server.items():
            self._workspaces[server][result_symbol] = merged

    def remove(self, symbol: str) -> None:
        """Remove a symbol from every server; unknown symbols are ignored."""
        for workspace in self._workspaces.values():
            workspace.pop(symbol, None)

    def exists(self, symbol: str) -> bool:
        """Check whether a symbol resolves on any server."""
        return any(symbol in workspace for workspace in self._workspaces.values())

    def workspace(self, server: str) -> Dict[str, pd.DataFrame]:
        """Server-side view of a workspace, for inspection in tests."""
        return self._workspaces[server]

    def _database(self, server: str) -> Mapping[str, pd.DataFrame]:
        """Database bound to a server."""
        resource = self._resources.get(server)
        if resource is None:
            raise RemoteOperationError("No resource has been opened", server)
        return self._databases[server][resource]

    def _find_table(self, server: str, table: str) -> Optional[pd.DataFrame]:
        """Case-insensitive table lookup."""
        database = self._database(server)
        for name, frame in database.items():
            if name.lower() == table.lower():
                return frame
        return None

    def _symbol(self, server: str, symbol: str) -> pd.DataFrame:
        """Resolve a workspace symbol."""
        try:
            return self._workspaces[server][symbol]
        except KeyError:
            raise RemoteOperationError(f"Symbol {symbol} not found", server) from None

    def _concept_names(self, server: str) -> Dict[int, str]:
        """Concept id -> name lookup from the server's concept table."""
        concept = self._find_table(server, "concept")
        if concept is None or not {"concept_id", "concept_name"} <= set(concept.columns):
            return {}
        return dict(zip(concept["concept_id"].astype("int64"), concept["concept_name"]))

    def _fetch(
        self,
        server: str,
        table: str,
        column_filter: Optional[Sequence[str]],
        concept_filter: Optional[Sequence[int]],
        person_filter: Optional[str],
        merge_column: Optional[str],
        drop_na: bool,
    ) -> pd.DataFrame:
        """Compute a filtered table on one server."""
        frame = self._find_table(server, table)
        if frame is None:
            raise RemoteOperationError(f"Table {table} not found", server)

        key = merge_column or self.link_column
        concept_column = find_concept_column(table, list(frame.columns))

        if concept_filter is not None:
            if concept_column is None:
                raise RemoteOperationError(f"Table {table} has no concept column", server)
            frame = frame[frame[concept_column].isin(list(concept_filter))]

        if person_filter is not None:
            persons = self._symbol(server, person_filter)
            # Subject membership goes through the subject column; the merge key only for tables without it
            if self.link_column in frame.columns and self.link_column in persons.columns:
                subject = self.link_column
            else:
                subject = key
            if subject not in frame.columns or subject not in persons.columns:
                raise RemoteOperationError(f"Column {subject} not found in {table} or {person_filter}", server)
            frame = frame[frame[subject].isin(persons[subject])]

        if column_filter is not None:
            keep = set(column_filter) | {key}
            if merge_column is not None and concept_column is not None:
                keep.add(concept_column)
            frame = frame[[column for column in frame.columns if column in keep]]

        if merge_column is not None:
            if merge_column not in frame.columns:
                raise RemoteOperationError(f"Column {merge_column} not found in {table}", server)
            widened_by = concept_column if concept_column in frame.columns else None
            frame = widen(frame, merge_column, widened_by)

        if drop_na:
            frame = frame.dropna(axis=1, how="all")

        if frame.empty:
            raise EmptyResultError(f"Filtering left {table} empty on {server}")

        return frame.reset_index(drop=True)
