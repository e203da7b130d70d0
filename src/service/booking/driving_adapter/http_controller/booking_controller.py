"""
Booking HTTP API

Identity is issued upstream; the gateway forwards the authenticated client
id in ``X-Client-Id``. Bookings of other clients answer 404, never 403.
"""

from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Header, Query, status

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.booking.app.booking_orchestrator import BookingOrchestrator
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    BookingAdvanceRequest,
    BookingCancelRequest,
    BookingCreateRequest,
    BookingOperationResponse,
    BookingPageResponse,
    BookingResponse,
    BookingReviewRequest,
    BookingUpdateRequest,
)


router = APIRouter()


async def get_client_id(x_client_id: str = Header(alias='X-Client-Id', min_length=1)) -> str:
    return x_client_id


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def create_booking(
    request: BookingCreateRequest,
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingOperationResponse:
    result = await orchestrator.create(
        client_id=client_id,
        service_type=request.service_type,
        scheduled_date=request.scheduled_date,
        scheduled_time=request.scheduled_time,
        location=request.location.model_dump(exclude_none=True),
        details=request.details,
    )
    return BookingOperationResponse.from_result(result)


@router.get('')
@Logger.io
@inject
async def list_bookings(
    booking_status: Optional[BookingStatus] = Query(default=None, alias='status'),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1),
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingPageResponse:
    result = await orchestrator.list_bookings(
        client_id=client_id, status=booking_status, page=page, page_size=page_size
    )
    return BookingPageResponse.from_page(result)


@router.get('/upcoming')
@Logger.io
@inject
async def list_upcoming_bookings(
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> list[BookingResponse]:
    bookings = await orchestrator.list_upcoming(client_id=client_id)
    return [BookingResponse.from_entity(booking) for booking in bookings]


@router.get('/history')
@Logger.io
@inject
async def list_booking_history(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1),
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingPageResponse:
    result = await orchestrator.list_history(client_id=client_id, page=page, page_size=page_size)
    return BookingPageResponse.from_page(result)


@router.get('/{booking_id}')
@Logger.io
@inject
async def get_booking(
    booking_id: UtilsUUID7,
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingResponse:
    booking = await orchestrator.get(booking_id=booking_id, client_id=client_id)
    return BookingResponse.from_entity(booking)


@router.patch('/{booking_id}')
@Logger.io
@inject
async def update_booking(
    booking_id: UtilsUUID7,
    request: BookingUpdateRequest,
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingOperationResponse:
    result = await orchestrator.update(
        booking_id=booking_id,
        client_id=client_id,
        scheduled_date=request.scheduled_date,
        scheduled_time=request.scheduled_time,
        location=request.location.model_dump(exclude_none=True) if request.location else None,
        details=request.details,
    )
    return BookingOperationResponse.from_result(result)


@router.post('/{booking_id}/cancel')
@Logger.io
@inject
async def cancel_booking(
    booking_id: UtilsUUID7,
    request: BookingCancelRequest,
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingOperationResponse:
    result = await orchestrator.cancel(
        booking_id=booking_id, client_id=client_id, reason=request.reason
    )
    return BookingOperationResponse.from_result(result)


@router.post('/{booking_id}/review')
@Logger.io
@inject
async def review_booking(
    booking_id: UtilsUUID7,
    request: BookingReviewRequest,
    client_id: str = Depends(get_client_id),
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingOperationResponse:
    result = await orchestrator.review(
        booking_id=booking_id,
        client_id=client_id,
        rating_payload=request.model_dump(exclude_none=True),
    )
    return BookingOperationResponse.from_result(result)


@router.post('/{booking_id}/status')
@Logger.io
@inject
async def advance_booking_status(
    booking_id: UtilsUUID7,
    request: BookingAdvanceRequest,
    orchestrator: BookingOrchestrator = Depends(Provide[Container.booking_orchestrator]),
) -> BookingOperationResponse:
    """Staff / dispatch systems: searching, assigned, confirmed, completed, no_show, cancel."""
    result = await orchestrator.advance(
        booking_id=booking_id,
        to_status=request.status,
        provider_id=request.provider_id,
        cancelled_by=request.cancelled_by,
        reason=request.reason,
    )
    return BookingOperationResponse.from_result(result)
