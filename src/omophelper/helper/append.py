"""
Join engine: fetch a filtered OMOP CDM table and left-join it into the base table.
"""

from typing import Optional, Sequence, Tuple

from omophelper.core.exceptions import ConfigurationError
from omophelper.core.logging import LogContext, get_logger, log_performance
from omophelper.helper.session import Session

logger = get_logger(__name__)


def resolve_link_columns(
    session: Session,
    link_left: Optional[str] = None,
    link_right: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Resolve the pair of columns joining the base table and a fetched table.

    Raises:
        ConfigurationError: If only one of the two columns is given
    """
    if (link_left is None) != (link_right is None):
        raise ConfigurationError("Both link_left and link_right must be provided or both must be None")

    if link_left is None:
        return session.link_column, session.link_column
    return link_left, link_right


def get(
    session: Session,
    table: str,
    symbol: Optional[str] = None,
    column_filter: Optional[Sequence[str]] = None,
    concept_filter: Optional[Sequence[int]] = None,
    person_filter: Optional[str] = None,
    merge_column: Optional[str] = None,
    drop_na: bool = False,
) -> str:
    """
    Fetch a table into the remote workspace without merging it.

    Args:
        session: Helper session
        table: OMOP CDM table name
        symbol: Symbol receiving the table (defaults to the table name)
        column_filter: Columns to keep
        concept_filter: Concept ids to keep
        person_filter: Symbol whose subjects restrict the rows
        merge_column: Column the table will later be merged on
        drop_na: Drop columns that are entirely empty

    Returns:
        Symbol the table was bound to
    """
    symbol = symbol or table
    session.gateway.get(
        table=table,
        symbol=symbol,
        column_filter=column_filter,
        concept_filter=concept_filter,
        person_filter=person_filter,
        merge_column=merge_column,
        drop_na=drop_na,
    )
    logger.info(f"Fetched {table} into {symbol}")
    return symbol


@log_performance("Append")
def append(
    session: Session,
    table: str,
    columns: Optional[Sequence[str]] = None,
    concepts: Optional[Sequence[int]] = None,
    link_left: Optional[str] = None,
    link_right: Optional[str] = None,
) -> None:
    """
    Left-join a filtered table into the base table on every server.

    The table is fetched under an ephemeral symbol restricted to the base
    table's subjects, merged so that every base row is kept, and the result
    replaces the base table. The ephemeral symbol is removed on every exit
    path before any error reaches the caller.

    Args:
        session: Helper session
        table: OMOP CDM table name
        columns: Columns to fetch (None fetches all)
        concepts: Concept ids to keep (None keeps all)
        link_left: Join column in the base table
        link_right: Join column in the fetched table

    Raises:
        ConfigurationError: If only one link column is given
        EmptyResultError: If the filters leave the table empty
        RemoteOperationError: If the fetch or the merge fails remotely
    """
    link_left, link_right = resolve_link_columns(session, link_left, link_right)
    suffixes = tuple(session.settings.merge_suffixes)

    with LogContext(base_symbol=session.symbol, table=table):
        with session.symbols.ephemeral() as table_symbol:
            session.gateway.get(
                table=table,
                symbol=table_symbol,
                column_filter=columns,
                concept_filter=concepts,
                person_filter=session.symbol,
                merge_column=link_right,
                drop_na=True,
            )

            session.gateway.merge(
                base_symbol=session.symbol,
                other_symbol=table_symbol,
                link_left=link_left,
                link_right=link_right,
                keep_all_left=True,
                keep_all_right=False,
                suffixes=suffixes,
                drop_duplicate_columns=True,
                result_symbol=session.symbol,
            )

        logger.info(f"Appended {table} to {session.symbol}")
