"""
Withings Shim - FastAPI Application
===================================
HTTP surface for the Withings shim.

Endpoints:
- GET /health
- GET /                              service and data type listing
- GET /data/withings/{data_type}     raw or normalized Withings data
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from withings_shim.config import get_settings
from withings_shim.errors import (
    MalformedVendorResponse,
    ShimException,
    TransportFailure,
    UnknownDataType,
    UnsupportedDataTypeDefect,
)
from withings_shim.logging_config import setup_logging
from withings_shim.models import USER_ID_PARAMETER, AccessParameters, ShimDataRequest
from withings_shim.shim import WithingsShim

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    setup_logging()
    logger.info("Withings shim starting up...")
    yield
    logger.info("Withings shim shutting down...")
    get_shim().transport.close()


api = FastAPI(
    title="Withings Shim",
    description="Retrieves Withings health data as raw JSON or normalized data points",
    version="1.0.0",
    lifespan=lifespan,
)


# -------------------------------------------------------------------------
# Dependencies
# -------------------------------------------------------------------------
@lru_cache()
def get_shim() -> WithingsShim:
    return WithingsShim(get_settings())


def get_access_parameters() -> AccessParameters:
    """Access parameters for the configured Withings account."""
    settings = get_settings()
    if not settings.WITHINGS_ACCESS_TOKEN:
        raise HTTPException(status_code=500, detail="Withings token not configured")
    return AccessParameters(
        access_token=settings.WITHINGS_ACCESS_TOKEN,
        token_secret=settings.WITHINGS_TOKEN_SECRET,
        additional_parameters={USER_ID_PARAMETER: settings.WITHINGS_USER_ID},
    )


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


# -------------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------------
@api.get("/health")
async def health_check():
    return {"status": "healthy", "service": "withings-shim"}


@api.get("/")
async def root(shim: WithingsShim = Depends(get_shim)):
    """Root endpoint - service information."""
    return {
        "shim": shim.shim_key,
        "label": shim.label,
        "data_types": [data_type.value for data_type in shim.shim_data_types],
        "endpoints": {
            "health": "/health",
            "data": "/data/withings/{data_type}",
        },
    }


@api.get("/data/withings/{data_type}")
async def get_withings_data(
    data_type: str,
    date_start: Optional[datetime] = Query(None, alias="dateStart"),
    date_end: Optional[datetime] = Query(None, alias="dateEnd"),
    normalize: bool = True,
    access_parameters: AccessParameters = Depends(get_access_parameters),
    shim: WithingsShim = Depends(get_shim),
):
    """
    Returns Withings data for ``data_type`` between dateStart and dateEnd
    (ISO-8601, naive values are UTC). dateEnd defaults to now and dateStart
    to one day before dateEnd.
    """
    end = _as_utc(date_end) if date_end else datetime.now(timezone.utc)
    start = _as_utc(date_start) if date_start else end - timedelta(days=1)

    try:
        request = ShimDataRequest(
            data_type_key=data_type,
            start_date_time=start,
            end_date_time=end,
            normalize=normalize,
            access_parameters=access_parameters,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        response = await run_in_threadpool(shim.get_data, request)
    except UnknownDataType as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (TransportFailure, MalformedVendorResponse) as exc:
        logger.exception("Withings data fetch failed")
        raise HTTPException(status_code=502, detail=f"Withings data fetch failed: {exc}")
    except ShimException as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except UnsupportedDataTypeDefect:
        logger.exception("Withings data type reached dispatch without a mapper")
        raise HTTPException(status_code=500, detail="Internal server error")

    return response.model_dump(mode="json")
