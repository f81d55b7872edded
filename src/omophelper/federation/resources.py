"""
Resource resolution across the servers of a federation.
"""

from typing import Dict, Mapping, Sequence

from omophelper.core.exceptions import ConfigurationError
from omophelper.federation.gateway import ResourceSpec


def resolve_resources(servers: Sequence[str], resource: ResourceSpec) -> Dict[str, str]:
    """
    Expand a resource specification into one identifier per server.

    A single identifier is used on every server. A mapping must name exactly
    the servers of the federation.

    Args:
        servers: Server names of the federation
        resource: Identifier or mapping of server name -> identifier

    Returns:
        Mapping of server name -> resource identifier

    Raises:
        ConfigurationError: If the specification does not match the servers
    """
    if not servers:
        raise ConfigurationError("The federation has no servers")

    if isinstance(resource, str):
        if not resource:
            raise ConfigurationError("The resource identifier cannot be empty")
        return {server: resource for server in servers}

    if not isinstance(resource, Mapping):
        raise ConfigurationError(
            f"Resource must be a string or a mapping, got {type(resource).__name__}"
        )

    missing = [server for server in servers if server not in resource]
    unknown = [name for name in resource if name not in servers]
    if missing or unknown:
        raise ConfigurationError(
            f"Resource names must match the servers: missing={missing}, unknown={unknown}"
        )

    return {server: resource[server] for server in servers}
