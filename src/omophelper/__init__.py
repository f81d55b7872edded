"""
omophelper - OMOP CDM analysis tables over a federation

Builds a per-subject table on every server of a federated OMOP CDM by
appending filtered tables with left joins, without moving row-level data
between servers.
"""

__version__ = "0.1.0"
__author__ = "omophelper Team"

from omophelper.core.config import settings
from omophelper.core.logging import get_logger
from omophelper.helper.omop_helper import OMOPCDMHelper, ds_omop_helper

logger = get_logger(__name__)

__all__ = ["settings", "logger", "OMOPCDMHelper", "ds_omop_helper", "__version__"]
