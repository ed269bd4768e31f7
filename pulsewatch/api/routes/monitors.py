"""Monitor endpoints: CRUD, forced checks and statistics reset."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
import structlog

from pulsewatch.api.dependencies import get_monitor_service
from pulsewatch.api.models import (
    CheckDownResponse,
    ErrorResponse,
    HistoryPointItem,
    MonitorBulkCreate,
    MonitorCreate,
    MonitorDetail,
    MonitorSummary,
    OkResponse,
)
from pulsewatch.monitors.errors import (
    CheckInFlightError,
    MonitorNotFoundError,
    MonitorValidationError,
)
from pulsewatch.monitors.schemas import MonitorPatch
from pulsewatch.monitors.service import MonitorService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/monitors")

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Monitor not found"}}
_BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid monitor input"}}


def _not_found(e: MonitorNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _bad_request(e: MonitorValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "",
    response_model=list[MonitorSummary],
    summary="List monitors",
    description="All monitors in creation order with uptime and health.",
)
async def list_monitors(
    service: MonitorService = Depends(get_monitor_service),
) -> list[dict]:
    return service.list_summaries()


@router.post(
    "",
    response_model=MonitorSummary,
    status_code=status.HTTP_201_CREATED,
    responses=_BAD_REQUEST,
    summary="Create monitor",
)
async def create_monitor(
    body: MonitorCreate,
    service: MonitorService = Depends(get_monitor_service),
) -> dict:
    try:
        monitor = await service.create(body.url, name=body.name, interval_ms=body.interval_ms)
    except MonitorValidationError as e:
        raise _bad_request(e)

    logger.info("Monitor created", monitor_id=monitor["id"], url=monitor["url"])
    return monitor


@router.post(
    "/bulk",
    response_model=list[MonitorSummary],
    status_code=status.HTTP_201_CREATED,
    responses=_BAD_REQUEST,
    summary="Create monitors in bulk",
    description="Creates one monitor per usable URL; unusable entries are skipped.",
)
async def bulk_create_monitors(
    body: MonitorBulkCreate,
    service: MonitorService = Depends(get_monitor_service),
) -> list[dict]:
    if not body.urls:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="urls[] is required",
        )

    created = await service.bulk_create(body.urls, names=body.names, interval_ms=body.interval_ms)
    logger.info("Monitors bulk created", requested=len(body.urls), created=len(created))
    return created


@router.post(
    "/check-down",
    response_model=CheckDownResponse,
    summary="Force-check down monitors",
    description="Re-checks every enabled monitor whose last result was down and waits for the results.",
)
async def check_down_monitors(
    service: MonitorService = Depends(get_monitor_service),
) -> CheckDownResponse:
    checked = await service.force_check_down()
    return CheckDownResponse(checked=checked, count=len(checked))


@router.get(
    "/{monitor_id}",
    response_model=MonitorDetail,
    responses=_NOT_FOUND,
    summary="Get monitor detail",
)
async def get_monitor(
    monitor_id: str,
    limit: int | None = Query(
        default=None,
        ge=1,
        le=200,
        description="Newest history points to include (default 100)",
    ),
    service: MonitorService = Depends(get_monitor_service),
) -> dict:
    try:
        return service.get_detail(monitor_id, limit=limit)
    except MonitorNotFoundError as e:
        raise _not_found(e)


@router.patch(
    "/{monitor_id}",
    response_model=MonitorSummary,
    responses={**_NOT_FOUND, **_BAD_REQUEST},
    summary="Update monitor",
    description="Only fields present in the body are changed; the timer is always re-armed.",
)
async def update_monitor(
    monitor_id: str,
    patch: MonitorPatch,
    service: MonitorService = Depends(get_monitor_service),
) -> dict:
    try:
        monitor = await service.update(monitor_id, patch)
    except MonitorNotFoundError as e:
        raise _not_found(e)
    except MonitorValidationError as e:
        raise _bad_request(e)

    logger.info("Monitor updated", monitor_id=monitor_id, fields=sorted(patch.model_fields_set))
    return monitor


@router.delete(
    "/{monitor_id}",
    response_model=OkResponse,
    responses=_NOT_FOUND,
    summary="Delete monitor",
)
async def delete_monitor(
    monitor_id: str,
    service: MonitorService = Depends(get_monitor_service),
) -> OkResponse:
    try:
        await service.delete(monitor_id)
    except MonitorNotFoundError as e:
        raise _not_found(e)

    logger.info("Monitor deleted", monitor_id=monitor_id)
    return OkResponse(ok=True)


@router.post(
    "/{monitor_id}/check",
    response_model=HistoryPointItem,
    responses={
        **_NOT_FOUND,
        409: {"model": ErrorResponse, "description": "A check is already in flight"},
    },
    summary="Force a check",
    description="Runs a forced check now and returns its terminal result.",
)
async def force_check(
    monitor_id: str,
    service: MonitorService = Depends(get_monitor_service),
) -> dict:
    try:
        point = await service.force_check(monitor_id)
    except MonitorNotFoundError as e:
        raise _not_found(e)
    except CheckInFlightError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return point.to_dict()


@router.post(
    "/{monitor_id}/reset",
    response_model=MonitorSummary,
    responses=_NOT_FOUND,
    summary="Reset monitor statistics",
    description="Clears history, last result and failure counters. The schedule is kept.",
)
async def reset_monitor(
    monitor_id: str,
    service: MonitorService = Depends(get_monitor_service),
) -> dict:
    try:
        return await service.reset_stats(monitor_id)
    except MonitorNotFoundError as e:
        raise _not_found(e)
