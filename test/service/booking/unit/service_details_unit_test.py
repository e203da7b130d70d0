import pytest

from src.platform.exception.exceptions import ValidationError
from src.service.booking.domain.enum.service_kind import ServiceKind
from src.service.booking.domain.value_object.rating import Rating
from src.service.booking.domain.value_object.service_details import (
    NursingDetails,
    PackageDetails,
    PhysiotherapyDetails,
    build_service_details,
    service_details_from_document,
    service_details_to_document,
)
from test.constants import NOW


@pytest.mark.unit
class TestBuildServiceDetails:
    def test_kind_selects_variant(self):
        details = build_service_details(
            ServiceKind.PHYSIOTHERAPY, {'body_part': 'lower back', 'pain_level': 6}
        )

        assert isinstance(details, PhysiotherapyDetails)
        assert details.kind == ServiceKind.PHYSIOTHERAPY
        assert details.duration_minutes == 60

    def test_missing_details_use_defaults(self):
        details = build_service_details(ServiceKind.NURSING, None)

        assert details == NursingDetails()

    @pytest.mark.parametrize(
        'kind,payload',
        [
            (ServiceKind.NURSING, {'injection_type': 'ORAL'}),
            (ServiceKind.NURSING, {'body_part': 'knee'}),
            (ServiceKind.PHYSIOTHERAPY, {'pain_level': 11}),
            (ServiceKind.PACKAGE, {}),
            (ServiceKind.PACKAGE, {'total_sessions': 0}),
            (ServiceKind.PACKAGE, {'total_sessions': 5, 'completed_sessions': 6}),
            (ServiceKind.PHYSIOTHERAPY, {'duration_minutes': 0}),
        ],
    )
    def test_invalid_details_are_rejected(self, kind, payload):
        with pytest.raises(ValidationError):
            build_service_details(kind, payload)

    def test_document_keeps_the_kind_tag(self):
        details = PackageDetails(total_sessions=10, completed_sessions=2)

        document = service_details_to_document(details)

        assert document['kind'] == 'package'
        assert service_details_from_document(document) == details


@pytest.mark.unit
class TestRatingFromPayload:
    def test_sub_ratings_are_read_from_nested_block(self):
        rating = Rating.from_payload(
            {'stars': 4, 'review': 'Good', 'sub_ratings': {'punctuality': 3, 'communication': 5}},
            rated_at=NOW,
        )

        assert rating.stars == 4
        assert rating.punctuality == 3
        assert rating.communication == 5
        assert rating.professionalism is None

    @pytest.mark.parametrize(
        'payload',
        [
            {},
            {'stars': 0},
            {'stars': 6},
            {'stars': True},
            {'stars': 5, 'sub_ratings': {'bedside_manner': 5}},
            {'stars': 5, 'skill_level': 9},
            {'stars': 5, 'review': 'x' * 2001},
        ],
    )
    def test_malformed_rating_is_rejected(self, payload):
        with pytest.raises(ValidationError):
            Rating.from_payload(payload, rated_at=NOW)
