from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.booking.app.booking_orchestrator import BookingOperationResult
from src.service.booking.app.dto.booking_page import BookingPage
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import CancelledBy
from src.service.booking.domain.value_object.service_details import service_details_to_document


class AddressSchema(BaseModel):
    street: str = Field(min_length=1)
    landmark: Optional[str] = None
    city: str = Field(min_length=1)
    state: Optional[str] = None
    pincode: str = Field(min_length=1)


class LocationSchema(BaseModel):
    type: Literal['HOME', 'CLINIC', 'HOSPITAL'] = 'HOME'
    address: AddressSchema
    contact_person: Optional[str] = None
    contact_phone: Optional[str] = None
    floor_number: Optional[str] = None
    additional_directions: Optional[str] = None


class BookingCreateRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'service_type': 'INJECTION',
                'scheduled_date': '2026-11-02',
                'scheduled_time': '09:30',
                'location': {
                    'address': {'street': '12 MG Road', 'city': 'Pune', 'pincode': '411001'},
                    'contact_phone': '+91-9000000000',
                },
                'details': {'injection_type': 'IM', 'medicine': 'B12'},
            }
        },
    }

    service_type: str = Field(min_length=1)
    scheduled_date: date
    scheduled_time: str = Field(pattern=r'^\d{2}:\d{2}$')
    location: LocationSchema
    # Shape depends on the service kind: nursing / physiotherapy / package fields
    details: Optional[dict[str, Any]] = None


class BookingUpdateRequest(BaseModel):
    """Only the fields sent are changed; pricing is not recomputed."""

    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    location: Optional[LocationSchema] = None
    details: Optional[dict[str, Any]] = None


class BookingCancelRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class SubRatingsSchema(BaseModel):
    punctuality: Optional[int] = Field(default=None, ge=1, le=5)
    professionalism: Optional[int] = Field(default=None, ge=1, le=5)
    skill_level: Optional[int] = Field(default=None, ge=1, le=5)
    communication: Optional[int] = Field(default=None, ge=1, le=5)


class BookingReviewRequest(BaseModel):
    stars: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)
    sub_ratings: Optional[SubRatingsSchema] = None


class BookingAdvanceRequest(BaseModel):
    status: BookingStatus
    provider_id: Optional[str] = None
    cancelled_by: Optional[CancelledBy] = None
    reason: Optional[str] = None


class PricingResponse(BaseModel):
    base_price: Decimal
    platform_fee: Decimal
    tax: Decimal
    payable_amount: Decimal
    currency: str
    surge_multiplier: Decimal


class CancellationResponse(BaseModel):
    cancelled_by: str
    reason: str
    cancelled_at: datetime
    refund_amount: Decimal
    cancellation_fee: Decimal


class RatingResponse(BaseModel):
    stars: int
    review: Optional[str] = None
    punctuality: Optional[int] = None
    professionalism: Optional[int] = None
    skill_level: Optional[int] = None
    communication: Optional[int] = None
    rated_at: datetime


class BookingResponse(BaseModel):
    id: UtilsUUID7
    client_id: str
    provider_id: Optional[str] = None
    service_type: str
    service_kind: str
    details: dict[str, Any]
    scheduled_date: date
    scheduled_time: str
    location: dict[str, Any]
    status: BookingStatus
    pricing: PricingResponse
    cancellation: Optional[CancellationResponse] = None
    rating: Optional[RatingResponse] = None
    status_timestamps: dict[str, datetime]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, booking: Booking) -> 'BookingResponse':
        cancellation = booking.cancellation
        rating = booking.rating
        return cls(
            id=booking.id,
            client_id=booking.client_id,
            provider_id=booking.provider_id,
            service_type=booking.service_type,
            service_kind=booking.service_kind.value,
            details=service_details_to_document(booking.details),
            scheduled_date=booking.scheduled_date,
            scheduled_time=booking.scheduled_time,
            location=dict(booking.location),
            status=booking.status,
            pricing=PricingResponse(
                base_price=booking.pricing.base_price,
                platform_fee=booking.pricing.platform_fee,
                tax=booking.pricing.tax,
                payable_amount=booking.pricing.payable_amount,
                currency=booking.pricing.currency,
                surge_multiplier=booking.pricing.surge_multiplier,
            ),
            cancellation=CancellationResponse(
                cancelled_by=cancellation.cancelled_by.value,
                reason=cancellation.reason,
                cancelled_at=cancellation.cancelled_at,
                refund_amount=cancellation.refund_amount,
                cancellation_fee=cancellation.cancellation_fee,
            )
            if cancellation
            else None,
            rating=RatingResponse(
                stars=rating.stars,
                review=rating.review,
                punctuality=rating.punctuality,
                professionalism=rating.professionalism,
                skill_level=rating.skill_level,
                communication=rating.communication,
                rated_at=rating.rated_at,
            )
            if rating
            else None,
            status_timestamps={
                status.value: stamped_at for status, stamped_at in booking.status_timestamps
            },
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class BookingOperationResponse(BaseModel):
    """``event_published`` false means committed, announcement pending (degraded success)."""

    outcome: Literal['success'] = 'success'
    booking: BookingResponse
    event: str
    event_published: bool

    @classmethod
    def from_result(cls, result: BookingOperationResult) -> 'BookingOperationResponse':
        return cls(
            booking=BookingResponse.from_entity(result.booking),
            event=result.event.event_name,
            event_published=result.published,
        )


class BookingPageResponse(BaseModel):
    items: list[BookingResponse]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def from_page(cls, page: BookingPage) -> 'BookingPageResponse':
        return cls(
            items=[BookingResponse.from_entity(booking) for booking in page.items],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages,
        )
