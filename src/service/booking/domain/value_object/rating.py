from datetime import datetime
from typing import Any, Mapping, Optional

import attrs

from src.platform.exception.exceptions import ValidationError


SUB_SCORE_NAMES = ('punctuality', 'professionalism', 'skill_level', 'communication')
MAX_REVIEW_LENGTH = 2000


def _check_score(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise ValidationError(f'{name} must be an integer between 1 and 5')


@attrs.frozen(kw_only=True)
class Rating:
    stars: int
    review: Optional[str] = None
    punctuality: Optional[int] = None
    professionalism: Optional[int] = None
    skill_level: Optional[int] = None
    communication: Optional[int] = None
    rated_at: datetime

    def __attrs_post_init__(self) -> None:
        _check_score('stars', self.stars)
        for name in SUB_SCORE_NAMES:
            value = getattr(self, name)
            if value is not None:
                _check_score(name, value)
        if self.review is not None and len(self.review) > MAX_REVIEW_LENGTH:
            raise ValidationError(f'review must be at most {MAX_REVIEW_LENGTH} characters')

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, rated_at: datetime) -> 'Rating':
        """
        Accepts ``{"stars": 5, "review": "...", "sub_ratings": {"punctuality": 4, ...}}``;
        sub-scores may also be given at the top level.
        """
        if 'stars' not in payload:
            raise ValidationError('stars is required')
        sub_ratings = dict(payload.get('sub_ratings') or {})
        unknown = set(sub_ratings) - set(SUB_SCORE_NAMES)
        if unknown:
            raise ValidationError(f'Unknown sub-ratings: {", ".join(sorted(unknown))}')
        for name in SUB_SCORE_NAMES:
            if name in payload and payload[name] is not None:
                sub_ratings.setdefault(name, payload[name])
        return cls(
            stars=payload['stars'],
            review=payload.get('review'),
            rated_at=rated_at,
            **sub_ratings,
        )

    def to_document(self) -> dict:
        document = attrs.asdict(self)
        document['rated_at'] = self.rated_at.isoformat()
        return document

    @classmethod
    def from_document(cls, document: Optional[dict]) -> Optional['Rating']:
        if not document:
            return None
        fields = dict(document)
        fields['rated_at'] = datetime.fromisoformat(fields['rated_at'])
        return cls(**fields)
