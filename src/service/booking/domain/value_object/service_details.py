"""
Kind-specific booking details (tagged variant)

Every variant shares description / duration / special instructions; the
``kind`` tag selects the extra fields. The state machine never looks past
the shared fields, so lifecycle logic stays kind-agnostic.
"""

from typing import Any, ClassVar, Mapping, Optional, Union

import attrs

from src.platform.exception.exceptions import ValidationError
from src.service.booking.domain.enum.service_kind import ServiceKind


INJECTION_TYPES = frozenset({'IM', 'IV', 'SC'})
DEFAULT_DURATION_MINUTES = 60


def _check_duration(duration_minutes: int) -> None:
    if duration_minutes <= 0:
        raise ValidationError('duration_minutes must be positive')


@attrs.frozen(kw_only=True)
class NursingDetails:
    kind: ClassVar[ServiceKind] = ServiceKind.NURSING

    description: Optional[str] = None
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    special_instructions: Optional[str] = None
    injection_type: Optional[str] = None
    medicine: Optional[str] = None

    def __attrs_post_init__(self) -> None:
        _check_duration(self.duration_minutes)
        if self.injection_type is not None and self.injection_type not in INJECTION_TYPES:
            raise ValidationError(
                f'injection_type must be one of {sorted(INJECTION_TYPES)}, got {self.injection_type!r}'
            )


@attrs.frozen(kw_only=True)
class PhysiotherapyDetails:
    kind: ClassVar[ServiceKind] = ServiceKind.PHYSIOTHERAPY

    description: Optional[str] = None
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    special_instructions: Optional[str] = None
    body_part: Optional[str] = None
    pain_level: Optional[int] = None
    previous_treatment: Optional[str] = None

    def __attrs_post_init__(self) -> None:
        _check_duration(self.duration_minutes)
        if self.pain_level is not None and not 1 <= self.pain_level <= 10:
            raise ValidationError('pain_level must be between 1 and 10')


@attrs.frozen(kw_only=True)
class PackageDetails:
    kind: ClassVar[ServiceKind] = ServiceKind.PACKAGE

    description: Optional[str] = None
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    special_instructions: Optional[str] = None
    total_sessions: int
    completed_sessions: int = 0

    def __attrs_post_init__(self) -> None:
        _check_duration(self.duration_minutes)
        if self.total_sessions < 1:
            raise ValidationError('total_sessions must be at least 1')
        if not 0 <= self.completed_sessions <= self.total_sessions:
            raise ValidationError('completed_sessions must be between 0 and total_sessions')


ServiceDetails = Union[NursingDetails, PhysiotherapyDetails, PackageDetails]

_VARIANTS: dict[ServiceKind, type] = {
    ServiceKind.NURSING: NursingDetails,
    ServiceKind.PHYSIOTHERAPY: PhysiotherapyDetails,
    ServiceKind.PACKAGE: PackageDetails,
}


def build_service_details(kind: ServiceKind, payload: Optional[Mapping[str, Any]]) -> ServiceDetails:
    """Build the variant for ``kind``; fields belonging to another kind are rejected."""
    variant = _VARIANTS[kind]
    payload = dict(payload or {})
    known = {field.name for field in attrs.fields(variant)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValidationError(f'Fields not allowed for {kind} bookings: {", ".join(unknown)}')
    try:
        return variant(**payload)
    except TypeError as e:
        # missing required field, e.g. total_sessions for packages
        raise ValidationError(f'Invalid {kind} details: {e}') from e


def service_details_to_document(details: ServiceDetails) -> dict:
    return {'kind': details.kind.value, **attrs.asdict(details)}


def service_details_from_document(document: Mapping[str, Any]) -> ServiceDetails:
    fields = dict(document)
    kind = ServiceKind(fields.pop('kind'))
    return _VARIANTS[kind](**fields)
