"""az-region-resolver – FastAPI web application.

REST API over the region alias table: resolve free-form region labels from
billing exports to canonical Azure region IDs and display names.
"""

import logging

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from az_region_resolver import __version__
from az_region_resolver.models.region import BatchResolveRequest
from az_region_resolver.resolver import (
    RegionAliasResolver,
    RegionNotFoundError,
    UnknownCloudError,
    get_resolver,
)
from az_region_resolver.settings import get_settings

app = FastAPI(
    title="az-region-resolver API",
    version=__version__,
    description=(
        "REST API for the Azure region alias resolver. "
        "Maps historical, abbreviated and marketing region labels found in "
        "billing exports to canonical Azure region IDs and display names."
    ),
    license_info={"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Colored logging (reuse uvicorn's formatter)
# ---------------------------------------------------------------------------


def _setup_logging(level: int = logging.WARNING) -> None:
    """Configure the root ``az_region_resolver`` logger with uvicorn-style colours."""
    from uvicorn.logging import DefaultFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(
        DefaultFormatter(fmt="%(levelprefix)s %(name)s - %(message)s", use_colors=True)
    )
    app_logger = logging.getLogger("az_region_resolver")
    app_logger.handlers = [handler]
    app_logger.setLevel(level)
    app_logger.propagate = False

    # Silence noisy third-party loggers
    logging.getLogger("azure").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def _resolver() -> RegionAliasResolver:
    return get_resolver(get_settings().table_path)


def _cloud(cloud: str | None) -> str | None:
    return cloud or get_settings().default_cloud


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"], summary="Service health")
async def health() -> JSONResponse:
    """Return the service version and the number of loaded aliases."""
    return JSONResponse({"status": "ok", "version": __version__, "aliases": len(_resolver())})


@app.get("/api/regions", tags=["Regions"], summary="List canonical regions")
async def list_regions(
    cloud: str | None = Query(
        None, description="Optional Azure cloud filter (e.g. AzureUSGovernment)."
    ),
) -> JSONResponse:
    """Return canonical regions sorted by display name."""
    try:
        regions = _resolver().list_regions(cloud)
    except UnknownCloudError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except Exception as exc:
        logger.exception("Failed to list regions")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse([r.model_dump(mode="json", by_alias=True) for r in regions])


@app.get("/api/regions/resolve", tags=["Regions"], summary="Resolve a region label")
async def resolve_region(
    label: str = Query(..., description="Region label as found in a billing export."),
    cloud: str | None = Query(
        None, description="Azure cloud used to disambiguate shared short codes."
    ),
) -> JSONResponse:
    """Resolve *label* to its canonical region.

    Returns the chosen match plus every candidate.  Status is ``ambiguous``
    when several regions share the label; the match is then the first one in
    table order.  Unknown labels return 404 with ``status: not_found``.
    """
    try:
        result = _resolver().resolve_result(label, _cloud(cloud))
    except UnknownCloudError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except Exception as exc:
        logger.exception("Failed to resolve %r", label)
        return JSONResponse({"error": str(exc)}, status_code=500)
    status_code = 404 if result.status == "not_found" else 200
    return JSONResponse(result.model_dump(mode="json", by_alias=True), status_code=status_code)


@app.post("/api/regions/resolve", tags=["Regions"], summary="Resolve several region labels")
async def resolve_regions(body: BatchResolveRequest) -> JSONResponse:
    """Resolve a batch of labels; unknown labels are reported, not rejected."""
    try:
        resolver = _resolver()
        cloud = _cloud(body.cloud)
        results = [resolver.resolve_result(label, cloud) for label in body.labels]
    except UnknownCloudError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except Exception as exc:
        logger.exception("Failed to resolve batch")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse({"results": [r.model_dump(mode="json", by_alias=True) for r in results]})


@app.get(
    "/api/regions/{region_id}/aliases",
    tags=["Regions"],
    summary="List the aliases of a region",
)
async def list_region_aliases(region_id: str) -> JSONResponse:
    """Return every label that resolves to *region_id*."""
    try:
        resolver = _resolver()
        aliases = resolver.aliases_for(region_id)
        region = resolver.get_region(region_id)
    except RegionNotFoundError as exc:
        return JSONResponse({"error": str(exc)}, status_code=404)
    except Exception as exc:
        logger.exception("Failed to list aliases for %r", region_id)
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse(
        {
            "region": region.model_dump(mode="json", by_alias=True) if region else None,
            "aliases": aliases,
        }
    )
