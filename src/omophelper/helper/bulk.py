"""
Best-effort multi-table appends.

Tables are appended one at a time. A table that fails is recorded and
abandoned for the rest of the run while the following tables are still
processed; earlier appends are kept.
"""

import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from omophelper.catalog import explorer as catalog
from omophelper.core.exceptions import ConfigurationError, CostlyOperationWarning
from omophelper.core.logging import get_logger, log_performance
from omophelper.helper.append import append
from omophelper.helper.columns import generate_table_columns
from omophelper.helper.session import Session

logger = get_logger(__name__)


class OutcomeStatus(Enum):
    """Result of processing one table."""
    APPENDED = "appended"
    SKIPPED = "skipped"  # Table not eligible (e.g. no link column)
    FAILED = "failed"  # Append raised


@dataclass
class TableOutcome:
    """Outcome of one table in a bulk run."""
    table: str
    status: OutcomeStatus
    columns: Optional[List[str]] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "table": self.table,
            "status": self.status.value,
            "columns": self.columns,
            "reason": self.reason,
            "error": repr(self.error) if self.error else None,
        }


@dataclass
class BulkReport:
    """Ordered outcomes of a bulk run."""
    outcomes: List[TableOutcome] = field(default_factory=list)

    def _tables(self, status: OutcomeStatus) -> List[str]:
        return [outcome.table for outcome in self.outcomes if outcome.status == status]

    @property
    def appended(self) -> List[str]:
        """Tables merged into the base table."""
        return self._tables(OutcomeStatus.APPENDED)

    @property
    def skipped(self) -> List[str]:
        """Tables left out because they were not eligible."""
        return self._tables(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> List[str]:
        """Tables whose append raised."""
        return self._tables(OutcomeStatus.FAILED)

    def get(self, table: str) -> Optional[TableOutcome]:
        """Outcome of a table, if it was processed."""
        for outcome in self.outcomes:
            if outcome.table == table.lower():
                return outcome
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "appended": self.appended,
            "skipped": self.skipped,
            "failed": self.failed,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


def _advise(session: Session, silent: bool, message: str) -> None:
    """Emit a cost advisory unless silenced, attributed to the caller of auto() or bulk()."""
    # _advise -> auto/bulk -> log_performance wrapper -> caller
    if silent or not session.settings.warn_unfiltered:
        return
    warnings.warn(message, CostlyOperationWarning, stacklevel=4)


def normalize_tables(session: Session, table_names: Iterable[str]) -> List[str]:
    """
    Lowercase and deduplicate table names, dropping the person and concept tables.

    Returns:
        Table names in first-seen order
    """
    excluded = set(session.settings.excluded_tables)
    names = dict.fromkeys(name.lower() for name in table_names)
    return [name for name in names if name not in excluded]


def _has_link_column(session: Session, table: str) -> bool:
    """Check whether any server exposes the link column for a table."""
    available = catalog.columns(session, [table])
    names = {
        column.lower()
        for server_tables in available.values()
        for column in server_tables.get(table, set())
    }
    return session.link_column in names


def _run(
    session: Session,
    table_names: Sequence[str],
    columns: Optional[Sequence[str]],
    concepts: Optional[Sequence[int]],
) -> BulkReport:
    """Append each table, recording its outcome."""
    report = BulkReport()

    for table in normalize_tables(session, table_names):
        table_columns = generate_table_columns(table, columns, session.settings.table_suffixes)

        try:
            if not _has_link_column(session, table):
                logger.info(f"Skipping {table}: no {session.link_column} column")
                report.outcomes.append(TableOutcome(
                    table=table,
                    status=OutcomeStatus.SKIPPED,
                    columns=table_columns,
                    reason=f"missing link column {session.link_column}",
                ))
                continue

            append(session, table, columns=table_columns, concepts=concepts)
            report.outcomes.append(TableOutcome(
                table=table,
                status=OutcomeStatus.APPENDED,
                columns=table_columns,
            ))

        except Exception as e:
            logger.warning(f"Skipping {table}: {e}", error_type=type(e).__name__)
            report.outcomes.append(TableOutcome(
                table=table,
                status=OutcomeStatus.FAILED,
                columns=table_columns,
                reason=str(e),
                error=e,
            ))

    logger.info(
        f"Bulk append finished for {session.symbol}",
        appended=len(report.appended),
        skipped=len(report.skipped),
        failed=len(report.failed),
    )
    return report


@log_performance("Auto append")
def auto(
    session: Session,
    tables: Optional[Iterable[str]] = None,
    columns: Optional[Sequence[str]] = None,
    concepts: Optional[Sequence[int]] = None,
    silent: bool = False,
) -> BulkReport:
    """
    Append every eligible table to the base table.

    Args:
        session: Helper session
        tables: Tables to append (None discovers every table of the federation)
        columns: Columns to fetch, expanded with table-prefixed variants
        concepts: Concept ids to keep
        silent: Suppress cost advisories

    Returns:
        BulkReport with one outcome per processed table
    """
    if tables is None:
        _advise(
            session, silent,
            "No `tables` have been specified. This can significantly slow down "
            "operations and include unnecessary data."
        )
        tables = catalog.unique_tables(catalog.tables(session))
    elif isinstance(tables, str):
        tables = [tables]

    if columns is None:
        _advise(session, silent, "A `columns` filter has not been provided. This can significantly slow down operations.")

    if concepts is None:
        _advise(
            session, silent,
            "A `concepts` filter has not been provided. This can significantly slow down "
            "operations and include unnecessary data."
        )

    return _run(session, list(tables), columns, concepts)


@log_performance("Bulk append")
def bulk(
    session: Session,
    tables: Iterable[str],
    columns: Optional[Sequence[str]] = None,
    concepts: Optional[Sequence[int]] = None,
    silent: bool = False,
) -> BulkReport:
    """
    Append an explicit set of tables to the base table.

    Raises:
        ConfigurationError: If no tables are given
    """
    if isinstance(tables, str):
        tables = [tables]
    tables = list(tables) if tables is not None else []
    if not tables:
        raise ConfigurationError("The 'tables' parameter cannot be None or empty")

    if columns is None:
        _advise(session, silent, "A `columns` filter has not been provided. This can significantly slow down operations.")

    return _run(session, tables, columns, concepts)
