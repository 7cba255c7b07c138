"""MCP server for Azure region alias resolution.

Exposes the same lookups as the web API – resolve a label, list canonical
regions, list the aliases of a region – as MCP tools so that AI agents
cleaning billing data can call them directly.

Run with:
    az-region-resolver mcp            # stdio transport (default)
    az-region-resolver mcp --sse      # SSE transport on port 8080

Or add to your MCP client config:
    {
      "mcpServers": {
        "az-region-resolver": {
          "command": "az-region-resolver",
          "args": ["mcp"]
        }
      }
    }
"""

import json
import logging
import os
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import Field

from az_region_resolver.resolver import RegionAliasResolver, get_resolver
from az_region_resolver.settings import get_settings

logger = logging.getLogger(__name__)


def _transport_security(allowed_hosts: str) -> TransportSecuritySettings:
    """Build SSE transport security from a comma-separated Host allow-list.

    An empty list turns DNS rebinding protection off, which is what a local
    stdio or loopback SSE server wants.
    """
    hosts = [h.strip() for h in allowed_hosts.split(",") if h.strip()]
    if not hosts:
        return TransportSecuritySettings(enable_dns_rebinding_protection=False)
    return TransportSecuritySettings(enable_dns_rebinding_protection=True, allowed_hosts=hosts)


mcp = FastMCP(
    "az-region-resolver",
    instructions=(
        "Azure region alias tools. "
        "Use resolve_region to turn region labels from billing or usage "
        "exports (e.g. 'US East 2', 'ustexas', 'par') into canonical Azure "
        "region IDs and display names. Short datacenter codes such as 'bn' "
        "are shared by the commercial and US Government clouds: check the "
        "candidates list and pass a cloud when the data comes from a "
        "sovereign cloud."
    ),
    transport_security=_transport_security(os.environ.get("FASTMCP_ALLOWED_HOSTS", "")),
)


def _resolver() -> RegionAliasResolver:
    return get_resolver(get_settings().table_path)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
def resolve_region(
    label: Annotated[str, Field(description="Region label, e.g. 'US East 2' or 'bn'.")],
    cloud: Annotated[
        str | None,
        Field(
            description=(
                "Optional Azure cloud used to disambiguate: AzureCloud, "
                "AzureUSGovernment, AzureChinaCloud or AzureGermanCloud."
            )
        ),
    ] = None,
) -> str:
    """Resolve a region label to its canonical Azure region.

    Returns ``{"label", "status", "match", "candidates"}``.  ``status`` is
    ``resolved``, ``ambiguous`` (several regions share the label; ``match``
    is the first in table order) or ``not_found`` (``match`` is null – the
    label is unknown and no guess is made).
    """
    result = _resolver().resolve_result(label, cloud or get_settings().default_cloud)
    return json.dumps(result.model_dump(mode="json", by_alias=True), indent=2)


@mcp.tool()
def list_regions(
    cloud: Annotated[str | None, Field(description="Optional Azure cloud filter.")] = None,
) -> str:
    """List canonical Azure regions.

    Returns a JSON array of ``{"OriginalValue", "RegionId", "RegionName",
    "cloud"}`` objects sorted by display name.
    """
    regions = _resolver().list_regions(cloud)
    return json.dumps([r.model_dump(mode="json", by_alias=True) for r in regions], indent=2)


@mcp.tool()
def list_region_aliases(
    region_id: Annotated[str, Field(description="Canonical region ID, e.g. eastus2.")],
) -> str:
    """List every known label that resolves to a canonical region ID."""
    aliases = _resolver().aliases_for(region_id)
    return json.dumps({"regionId": region_id, "aliases": aliases}, indent=2)
