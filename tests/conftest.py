"""Shared fixtures: a two-server OMOP CDM federation held in memory."""

from __future__ import annotations

from typing import Dict, List

import pandas as pd
import pytest

from omophelper.core.config import Settings
from omophelper.core.exceptions import RemoteOperationError
from omophelper.federation.memory import InMemoryFederation
from omophelper.helper.omop_helper import OMOPCDMHelper

DIABETES = 201826
HYPERTENSION = 320128
METFORMIN = 1124300
BMI_FINDING = 4275495
HBA1C = 3004410
OUTPATIENT_VISIT = 9201

CONCEPT_NAMES = {
    8507: "MALE",
    8532: "FEMALE",
    DIABETES: "Type 2 diabetes mellitus",
    HYPERTENSION: "Essential hypertension",
    METFORMIN: "metformin 500 MG Oral Tablet",
    BMI_FINDING: "Body mass index finding record",  # 30 characters
    HBA1C: "Hemoglobin A1c/Hemoglobin.total in Blood",
    OUTPATIENT_VISIT: "Outpatient Visit",
}


def _person(ids: List[int]) -> pd.DataFrame:
    return pd.DataFrame({
        "person_id": ids,
        "year_of_birth": [1950 + (i % 40) for i in ids],
        "gender_concept_id": [8507 if i % 2 else 8532 for i in ids],
        "race_source_value": [None] * len(ids),
    })


def _concept() -> pd.DataFrame:
    return pd.DataFrame({
        "concept_id": list(CONCEPT_NAMES),
        "concept_name": list(CONCEPT_NAMES.values()),
    })


def _condition(rows: List[tuple]) -> pd.DataFrame:
    return pd.DataFrame(
        rows,
        columns=["condition_occurrence_id", "person_id", "condition_concept_id", "condition_start_date"],
    )


def _drug(ids: List[int]) -> pd.DataFrame:
    return pd.DataFrame({
        "drug_exposure_id": [3000 + i for i in ids],
        "person_id": ids,
        "drug_concept_id": [METFORMIN] * len(ids),
        "drug_exposure_start_date": ["2020-01-01"] * len(ids),
        "start_date": ["2020-01-01"] * len(ids),
    })


def _observation(ids: List[int]) -> pd.DataFrame:
    return pd.DataFrame({
        "observation_id": [4000 + i for i in ids],
        "person_id": ids,
        "observation_concept_id": [BMI_FINDING] * len(ids),
        "value_as_number": [20.0 + (i % 15) for i in ids],
    })


def _visit(ids: List[int]) -> pd.DataFrame:
    return pd.DataFrame({
        "visit_occurrence_id": [5000 + i for i in ids],
        "person_id": ids,
        "visit_concept_id": [OUTPATIENT_VISIT] * len(ids),
    })


def _measurement(ids: List[int]) -> pd.DataFrame:
    return pd.DataFrame({
        "measurement_id": [6000 + i for i in ids],
        "person_id": ids,
        "measurement_concept_id": [HBA1C] * len(ids),
        "value_as_number": [5.0 + (i % 4) for i in ids],
    })


def _care_site() -> pd.DataFrame:
    return pd.DataFrame({"care_site_id": [1, 2], "care_site_name": ["North", "South"]})


def build_tables() -> Dict[str, Dict[str, pd.DataFrame]]:
    """Server A holds subjects 1-100, server B subjects 101-150; only B has measurement."""
    server_a_ids = list(range(1, 101))
    server_b_ids = list(range(101, 151))

    condition_a = _condition(
        [(1000 + p, p, DIABETES, "2019-05-01") for p in range(1, 41)]
        + [(2000 + p, p, HYPERTENSION, "2018-03-01") for p in range(1, 71)]
        # a second diabetes record for some subjects
        + [(7000 + p, p, DIABETES, "2021-01-01") for p in range(1, 11)]
    )
    condition_b = _condition([(1000 + p, p, DIABETES, "2019-05-01") for p in range(101, 111)])

    return {
        "server_a": {
            "person": _person(server_a_ids),
            "concept": _concept(),
            "condition_occurrence": condition_a,
            "drug_exposure": _drug(list(range(1, 51))),
            "observation": _observation(server_a_ids),
            "visit_occurrence": _visit(server_a_ids),
            "care_site": _care_site(),
        },
        "server_b": {
            "person": _person(server_b_ids),
            "concept": _concept(),
            "condition_occurrence": condition_b,
            "drug_exposure": _drug(list(range(101, 121))),
            "observation": _observation(server_b_ids),
            "visit_occurrence": _visit(server_b_ids),
            "measurement": _measurement(server_b_ids),
            "care_site": _care_site(),
        },
    }


class RecordingFederation(InMemoryFederation):
    """In-memory federation that records fetched symbols and can fail merges."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fetched_symbols: List[str] = []
        self.merged_tables: List[str] = []
        self.fail_merge = False

    def get(self, table, symbol, *args, **kwargs):
        self.fetched_symbols.append(symbol)
        super().get(table, symbol, *args, **kwargs)

    def merge(self, base_symbol, other_symbol, *args, **kwargs):
        self.merged_tables.append(other_symbol)
        if self.fail_merge:
            raise RemoteOperationError("merge rejected by server", "server_a")
        super().merge(base_symbol, other_symbol, *args, **kwargs)


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests."""
    return Settings(environment="testing")


@pytest.fixture
def federation() -> RecordingFederation:
    """Two-server federation with one resource named 'omop' per server."""
    return RecordingFederation.from_tables(build_tables())


@pytest.fixture
def helper(federation: RecordingFederation, test_settings: Settings) -> OMOPCDMHelper:
    """Helper with its base table seeded under 'base'."""
    return OMOPCDMHelper(federation, "omop", "base", settings=test_settings)


def base_table(federation: InMemoryFederation, server: str = "server_a", symbol: str = "base") -> pd.DataFrame:
    """Server-side base table."""
    return federation.workspace(server)[symbol]
