"""
Catalog discovery across the servers of a federation.

Only metadata is gathered here: table names, column names and concept
dictionaries. Results stay keyed by server; a table missing on a server is a
missing key for that server.
"""

from typing import Dict, Iterable, List, Optional, Set

import pandas as pd

from omophelper.core.exceptions import ConfigurationError, NotFoundError
from omophelper.core.logging import get_logger
from omophelper.helper.session import Session

logger = get_logger(__name__)

ELLIPSIS = "..."


def tables(session: Session) -> Dict[str, Set[str]]:
    """
    List the tables of every server.

    Returns:
        Mapping of server name -> table names
    """
    return session.gateway.tables()


def unique_tables(tables_by_server: Dict[str, Iterable[str]]) -> List[str]:
    """Table names across servers, first-seen order, without duplicates."""
    names = [name for server_tables in tables_by_server.values() for name in sorted(server_tables)]
    return list(dict.fromkeys(names))


def _requested_tables(session: Session, requested: Optional[Iterable[str]]) -> List[str]:
    """Requested tables, or every discovered table."""
    if requested is None:
        return unique_tables(tables(session))
    if isinstance(requested, str):
        requested = [requested]
    return list(dict.fromkeys(requested))


def _in_federation_order(session: Session, by_server: Dict) -> Dict:
    """Order a per-server mapping like the servers of the federation."""
    return {server: by_server[server] for server in session.servers if server in by_server}


def columns(session: Session, table_names: Optional[Iterable[str]] = None) -> Dict[str, Dict[str, Set[str]]]:
    """
    List the columns of tables on every server.

    Args:
        session: Helper session
        table_names: Tables to inspect (None inspects every table)

    Returns:
        Mapping of server name -> table name -> column names

    Raises:
        NotFoundError: If none of the tables exists on any server
    """
    result: Dict[str, Dict[str, Set[str]]] = {}

    for table_name in _requested_tables(session, table_names):
        try:
            table_columns = session.gateway.columns(table_name)
        except Exception as e:
            logger.debug(f"Skipping columns of {table_name}: {e}")
            continue

        for server, server_columns in table_columns.items():
            if server_columns is None:
                continue
            result.setdefault(server, {})[table_name] = set(server_columns)

    if not result:
        raise NotFoundError("The requested tables could not be found in any of the servers")

    return _in_federation_order(session, result)


def concepts(
    session: Session,
    table_names: Optional[Iterable[str]] = None,
    max_name_length: Optional[int] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Build the concept dictionary of every server.

    Args:
        session: Helper session
        table_names: Tables to inspect (None inspects every table)
        max_name_length: Truncate longer concept names to this many characters

    Returns:
        Mapping of server name -> DataFrame with concept_id and concept_name

    Raises:
        ConfigurationError: If max_name_length cannot hold the ellipsis
        NotFoundError: If no concept resolves on any server
    """
    if max_name_length is not None and max_name_length < len(ELLIPSIS):
        raise ConfigurationError(f"max_name_length must be at least {len(ELLIPSIS)}")

    frames: Dict[str, List[pd.DataFrame]] = {}

    for table_name in _requested_tables(session, table_names):
        try:
            table_concepts = session.gateway.concepts(table_name)
        except Exception as e:
            logger.debug(f"Skipping concepts of {table_name}: {e}")
            continue

        for server, server_concepts in table_concepts.items():
            if server_concepts is None or server_concepts.empty:
                continue
            frames.setdefault(server, []).append(server_concepts)

    if not frames:
        raise NotFoundError("No concepts could be found for the requested tables in any of the servers")

    result = {}
    for server, server_frames in frames.items():
        combined = pd.concat(server_frames, ignore_index=True).drop_duplicates().reset_index(drop=True)
        if max_name_length is not None and "concept_name" in combined.columns:
            combined["concept_name"] = truncate_names(combined["concept_name"], max_name_length)
        result[server] = combined

    return _in_federation_order(session, result)


def truncate_names(names: pd.Series, max_length: int) -> pd.Series:
    """
    Truncate names longer than max_length.

    Truncated names are exactly max_length characters and end in an ellipsis.
    Missing names stay missing.
    """
    names = names.astype("string")
    too_long = names.str.len().gt(max_length).fillna(False).astype(bool)
    return names.where(~too_long, names.str[: max_length - len(ELLIPSIS)] + ELLIPSIS)
