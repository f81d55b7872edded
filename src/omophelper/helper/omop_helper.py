"""
OMOP CDM helper facade.

Wraps a Session and forwards to the module-level operations, so the state a
call touches is always the session it holds.
"""

from typing import Dict, Iterable, Optional, Sequence, Set

import pandas as pd

from omophelper.catalog import explorer
from omophelper.core.config import Settings
from omophelper.federation.gateway import FederationGateway, ResourceSpec
from omophelper.helper.append import append as append_table, get as get_table
from omophelper.helper.bulk import auto as auto_append, bulk as bulk_append
from omophelper.helper.bulk import BulkReport
from omophelper.helper.session import Session, open_session


class OMOPCDMHelper:
    """
    Builds a per-subject analysis table from an OMOP CDM federation.

    The base table is seeded from the person table on every server and grows
    by one left join per appended table. Row-level data stays on its server.

    Example:
        helper = OMOPCDMHelper(
            gateway,
            resource="cdm_database",
            symbol="study_cohort",
            person_columns=["person_id", "year_of_birth", "gender_concept_id"],
        )
        helper.append("condition_occurrence", concepts=[201826])
        report = helper.auto(["drug_exposure", "measurement"], columns=["start_date"])
    """

    def __init__(
        self,
        gateway: FederationGateway,
        resource: ResourceSpec,
        symbol: str,
        person_columns: Optional[Sequence[str]] = None,
        person_filter: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Open the resource and seed the base table.

        Args:
            gateway: Federation gateway
            resource: Resource identifier, or mapping of server name -> identifier
            symbol: Symbol of the base table on every server
            person_columns: Person columns to keep (None keeps all)
            person_filter: Existing symbol holding the subjects to keep
            settings: Settings override
        """
        self.session: Session = open_session(
            gateway,
            resource,
            symbol,
            person_columns=person_columns,
            person_filter=person_filter,
            settings=settings,
        )

    @property
    def symbol(self) -> str:
        """Symbol of the base table."""
        return self.session.symbol

    @property
    def gateway(self) -> FederationGateway:
        """Federation gateway."""
        return self.session.gateway

    def get(
        self,
        table: str,
        symbol: Optional[str] = None,
        column_filter: Optional[Sequence[str]] = None,
        concept_filter: Optional[Sequence[int]] = None,
        person_filter: Optional[str] = None,
        merge_column: Optional[str] = None,
        drop_na: bool = False,
    ) -> str:
        """Fetch a table without merging it; see omophelper.helper.append.get."""
        return get_table(
            self.session,
            table,
            symbol=symbol,
            column_filter=column_filter,
            concept_filter=concept_filter,
            person_filter=person_filter,
            merge_column=merge_column,
            drop_na=drop_na,
        )

    def append(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        concepts: Optional[Sequence[int]] = None,
        link_left: Optional[str] = None,
        link_right: Optional[str] = None,
    ) -> None:
        """Left-join a table into the base table; see omophelper.helper.append.append."""
        append_table(
            self.session,
            table,
            columns=columns,
            concepts=concepts,
            link_left=link_left,
            link_right=link_right,
        )

    def auto(
        self,
        tables: Optional[Iterable[str]] = None,
        columns: Optional[Sequence[str]] = None,
        concepts: Optional[Sequence[int]] = None,
        silent: bool = False,
    ) -> BulkReport:
        """Append every eligible table; see omophelper.helper.bulk.auto."""
        return auto_append(self.session, tables, columns=columns, concepts=concepts, silent=silent)

    def bulk(
        self,
        tables: Iterable[str],
        columns: Optional[Sequence[str]] = None,
        concepts: Optional[Sequence[int]] = None,
        silent: bool = False,
    ) -> BulkReport:
        """Append an explicit set of tables; see omophelper.helper.bulk.bulk."""
        return bulk_append(self.session, tables, columns=columns, concepts=concepts, silent=silent)

    def tables(self) -> Dict[str, Set[str]]:
        """Tables of every server."""
        return explorer.tables(self.session)

    def columns(self, tables: Optional[Iterable[str]] = None) -> Dict[str, Dict[str, Set[str]]]:
        """Columns of the given (or all) tables on every server."""
        return explorer.columns(self.session, tables)

    def concepts(
        self,
        tables: Optional[Iterable[str]] = None,
        max_name_length: Optional[int] = None,
    ) -> Dict[str, pd.DataFrame]:
        """Concept dictionary of every server."""
        return explorer.concepts(self.session, tables, max_name_length=max_name_length)

    def close(self) -> None:
        """Remove the base table from every server."""
        self.session.close()

    def __repr__(self) -> str:
        """Detailed representation."""
        return (
            f"{self.__class__.__name__}("
            f"symbol={self.session.symbol}, "
            f"servers={self.session.servers}"
            f")"
        )


def ds_omop_helper(
    gateway: FederationGateway,
    resource: ResourceSpec,
    symbol: str,
    person_columns: Optional[Sequence[str]] = None,
    person_filter: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> OMOPCDMHelper:
    """Create an OMOPCDMHelper."""
    return OMOPCDMHelper(gateway, resource, symbol, person_columns, person_filter, settings)
