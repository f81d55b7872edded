"""
Base table construction: sessions, appends and bulk runs.
"""

from omophelper.helper.columns import generate_table_columns, table_prefix
from omophelper.helper.session import Session, open_session
from omophelper.helper.append import append, get, resolve_link_columns
from omophelper.helper.bulk import BulkReport, OutcomeStatus, TableOutcome, auto, bulk

__all__ = [
    "generate_table_columns",
    "table_prefix",
    "Session",
    "open_session",
    "append",
    "get",
    "resolve_link_columns",
    "BulkReport",
    "OutcomeStatus",
    "TableOutcome",
    "auto",
    "bulk",
]
