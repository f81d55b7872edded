"""
Column name heuristics for OMOP CDM tables.

OMOP tables mix generic column names (``start_date``) with table-specific
ones (``drug_start_date``). A column request is expanded to both forms so a
single filter matches either convention.
"""

from typing import List, Optional, Sequence

from omophelper.core.config import settings


def table_prefix(table_name: str, suffixes: Optional[Sequence[str]] = None) -> str:
    """
    Short prefix of a table, used by its table-specific column names.

    Args:
        table_name: OMOP CDM table name (e.g. ``drug_exposure``)
        suffixes: Compound suffixes to strip (defaults to settings)

    Returns:
        Lowercase prefix (e.g. ``drug``)
    """
    if suffixes is None:
        suffixes = settings.table_suffixes

    prefix = table_name.lower()
    for suffix in suffixes:
        if suffix and prefix.endswith(suffix) and len(prefix) > len(suffix):
            prefix = prefix[: -len(suffix)]
    return prefix


def generate_table_columns(
    table_name: str,
    columns: Optional[Sequence[str]],
    suffixes: Optional[Sequence[str]] = None,
) -> Optional[List[str]]:
    """
    Expand requested columns with their table-prefixed variants.

    Args:
        table_name: OMOP CDM table name
        columns: Requested columns; None means every column
        suffixes: Compound suffixes to strip from the table name

    Returns:
        Literal and prefixed names without duplicates, or None when no
        columns were requested
    """
    if columns is None:
        return None

    prefix = table_prefix(table_name, suffixes)
    prefixed = [f"{prefix}_{column}" for column in columns]

    # dict keeps first-seen order
    return list(dict.fromkeys([*columns, *prefixed]))
