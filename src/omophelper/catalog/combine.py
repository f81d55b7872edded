"""
Federation-wide views of per-server catalogs.

Combined views are unions of metadata. A combined concept records the servers
that carry it, so its presence never implies it exists everywhere.
"""

from typing import Dict, Iterable, List, Set

import pandas as pd


def combine_tables(tables_by_server: Dict[str, Iterable[str]]) -> List[str]:
    """Sorted union of table names, lowercased."""
    return sorted({name.lower() for names in tables_by_server.values() for name in names})


def combine_columns(columns_by_server: Dict[str, Dict[str, Set[str]]]) -> Dict[str, Set[str]]:
    """
    Union of the columns of each table across servers.

    Args:
        columns_by_server: Mapping of server -> table -> columns

    Returns:
        Mapping of table -> columns seen on any server
    """
    combined: Dict[str, Set[str]] = {}
    for server_tables in columns_by_server.values():
        for table_name, table_columns in server_tables.items():
            combined.setdefault(table_name, set()).update(table_columns)
    return combined


def table_servers(columns_by_server: Dict[str, Dict[str, Set[str]]]) -> Dict[str, List[str]]:
    """Servers holding each table, in federation order."""
    holders: Dict[str, List[str]] = {}
    for server, server_tables in columns_by_server.items():
        for table_name in server_tables:
            holders.setdefault(table_name, []).append(server)
    return holders


def combine_concepts(concepts_by_server: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Union of concept dictionaries across servers.

    Args:
        concepts_by_server: Mapping of server -> DataFrame with concept_id and concept_name

    Returns:
        DataFrame with concept_id, concept_name and the tuple of servers carrying it
    """
    frames = [
        frame[["concept_id", "concept_name"]].assign(server=server)
        for server, frame in concepts_by_server.items()
        if not frame.empty
    ]
    if not frames:
        return pd.DataFrame(columns=["concept_id", "concept_name", "servers"])

    stacked = pd.concat(frames, ignore_index=True)

    holders: Dict[int, List[str]] = {}
    for concept_id, server in zip(stacked["concept_id"], stacked["server"]):
        holders.setdefault(concept_id, [])
        if server not in holders[concept_id]:
            holders[concept_id].append(server)

    combined = stacked.groupby("concept_id", sort=True)["concept_name"].first().reset_index()
    combined["servers"] = [tuple(holders[concept_id]) for concept_id in combined["concept_id"]]
    return combined
