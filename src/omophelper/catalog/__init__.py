"""
Catalog discovery for OMOP CDM federations.

Per-server tables, columns and concept dictionaries, and their combination.
"""

from .combine import combine_columns, combine_concepts, combine_tables, table_servers
from .explorer import columns, concepts, tables, unique_tables

__all__ = [
    "columns",
    "concepts",
    "tables",
    "unique_tables",
    "combine_columns",
    "combine_concepts",
    "combine_tables",
    "table_servers",
]
