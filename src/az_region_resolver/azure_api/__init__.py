"""Azure Resource Manager helpers used to check the alias table against live data.

Re-exports the public names so that ``from az_region_resolver import
azure_api`` gives access to everything, and so tests can patch
``az_region_resolver.azure_api.requests.get`` in one place.
"""

import requests as requests  # noqa: F401  # re-export for mock patching

# -- Auth & constants -------------------------------------------------------
from az_region_resolver.azure_api._auth import (  # noqa: F401
    AZURE_API_VERSION,
    AZURE_MGMT_URL,
    _get_headers,
    credential,
)

# -- Discovery ---------------------------------------------------------------
from az_region_resolver.azure_api.discovery import (  # noqa: F401
    LOCATIONS_CACHE_TTL,
    _locations_cache,
    list_locations,
    list_subscriptions,
)
