"""
Federation access layer.

Gateway interface, resource resolution and ephemeral symbol management.
"""

from omophelper.federation.gateway import FederationGateway, ResourceSpec
from omophelper.federation.memory import InMemoryFederation
from omophelper.federation.resources import resolve_resources
from omophelper.federation.symbols import SymbolManager

__all__ = [
    "FederationGateway",
    "ResourceSpec",
    "InMemoryFederation",
    "resolve_resources",
    "SymbolManager",
]
