"""Visit rating engine.

Turns the observations recorded for a single church visit into a 1-5 star
rating. Pure: no I/O, no clock, no shared mutable state. Malformed numeric
input is coerced (missing, negative, NaN -> 0) so a result is always returned;
validating a submission is the caller's job (see score.validation).
"""
import logging
from dataclasses import dataclass, asdict
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from church_rating.score.rules import (
    DEFAULT_POLICY,
    MAX_FINANCIAL_SCORE,
    MAX_RATING,
    MAX_STARS,
    MIN_STARS,
    MISSIONARY_BONUS,
    NO_OFFERING_SCORE,
    RatingPolicy,
    RatingWeights,
)

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass(frozen=True)
class VisitObservation:
    """What the visiting missionary recorded about one visit."""
    mission_openness_rating: Any
    hospitality_rating: Any
    missionary_support_count: Any = 0
    offerings_amount: Any = 0
    church_members: Any = 0
    attendees_count: Any = 0
    visit_duration_minutes: Optional[int] = None
    notes: Optional[str] = None

    _KEY_ALIASES = {
        "missionOpennessRating": "mission_openness_rating",
        "hospitalityRating": "hospitality_rating",
        "missionarySupportCount": "missionary_support_count",
        "offeringsAmount": "offerings_amount",
        "churchMembers": "church_members",
        "attendeesCount": "attendees_count",
        "visitDurationMinutes": "visit_duration_minutes",
    }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VisitObservation":
        """Build from an API payload (camelCase) or a table row (snake_case)."""
        values = {}
        for key, value in data.items():
            name = cls._KEY_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                values[name] = value
        values.setdefault("mission_openness_rating", None)
        values.setdefault("hospitality_rating", None)
        return cls(**values)


@dataclass(frozen=True)
class RatingBreakdown:
    """Component values that fed the star rating."""
    mission_openness: Number
    hospitality: Number
    financial: int
    missionary_bonus: int = MISSIONARY_BONUS


@dataclass(frozen=True)
class RatingResult:
    """Outcome of rating one visit."""
    star_rating: int
    financial_score: int
    breakdown: RatingBreakdown
    missionary_bonus: int = MISSIONARY_BONUS

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape used by the HTTP layer."""
        return {
            "starRating": self.star_rating,
            "financialScore": self.financial_score,
            "missionaryBonus": self.missionary_bonus,
            "breakdown": {
                "missionOpenness": self.breakdown.mission_openness,
                "hospitality": self.breakdown.hospitality,
                "financial": self.breakdown.financial,
                "missionaryBonus": self.breakdown.missionary_bonus,
            },
        }

    def as_record(self) -> Dict[str, Any]:
        """Flat snake_case form, as stored next to the visit."""
        record = asdict(self)
        record.pop("breakdown")
        return record


def to_amount(value: Any) -> Decimal:
    """
    Coerce a numeric-like value to a non-negative Decimal.

    None, NaN, infinities, negatives and unparseable values become 0.
    """
    if value is None or isinstance(value, bool):
        return _ZERO
    try:
        if isinstance(value, (Decimal, int)):
            # Decimal(int) is exact and avoids the int-to-str digit limit
            amount = Decimal(value)
        else:
            amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        logger.debug("Treating non-numeric value of type %s as 0", type(value).__name__)
        return _ZERO
    if amount.is_nan() or amount.is_infinite() or amount < 0:
        logger.debug("Treating out-of-range value %s as 0", amount)
        return _ZERO
    return amount


def _to_rating(value: Any) -> Decimal:
    return min(to_amount(value), Decimal(MAX_RATING))


def _plain(value: Decimal) -> Number:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def calculate_financial_score(
    offerings: Any,
    members: Any,
    attendees: Any,
    thresholds: Sequence[Decimal] = DEFAULT_POLICY.financial_thresholds,
) -> int:
    """
    Score the offering from 0 to 5.

    0 means no offering was made. Any positive offering scores at least 1;
    the tier is picked from the offering per attendee (per member when no
    attendee count was recorded).

    Args:
        offerings: Offering collected during the visit
        members: Church membership
        attendees: People present at the visit
        thresholds: Lower bounds of tiers 2..5, increasing

    Returns:
        Financial score (0-5)
    """
    amount = to_amount(offerings)
    if amount == 0:
        return NO_OFFERING_SCORE

    denominator = to_amount(attendees) or to_amount(members) or _ONE
    if denominator < _ONE:
        denominator = _ONE
    per_person = amount / denominator

    score = 1 + sum(1 for bound in thresholds if per_person >= bound)
    return min(score, MAX_FINANCIAL_SCORE)


def select_weights(offerings: Any, policy: RatingPolicy = DEFAULT_POLICY) -> RatingWeights:
    """Standard weights when an offering was made, redistributed weights otherwise."""
    if to_amount(offerings) > 0:
        return policy.standard_weights
    return policy.no_offering_weights


def round_stars(weighted: Decimal) -> int:
    """Round half-up and clamp to the star range."""
    stars = int(weighted.quantize(_ONE, rounding=ROUND_HALF_UP))
    return max(MIN_STARS, min(MAX_STARS, stars))


def calculate_visit_rating(
    observation: VisitObservation,
    policy: RatingPolicy = DEFAULT_POLICY,
) -> RatingResult:
    """
    Calculate the star rating for a visit.

    Args:
        observation: Visit observations
        policy: Weights and financial thresholds

    Returns:
        RatingResult with star rating, financial score and breakdown
    """
    mission_openness = _to_rating(observation.mission_openness_rating)
    hospitality = _to_rating(observation.hospitality_rating)

    financial_score = calculate_financial_score(
        observation.offerings_amount,
        observation.church_members,
        observation.attendees_count,
        policy.financial_thresholds,
    )
    weights = select_weights(observation.offerings_amount, policy)

    weighted = (
        weights.mission_openness * mission_openness
        + weights.hospitality * hospitality
        + weights.financial * Decimal(financial_score)
    )

    return RatingResult(
        star_rating=round_stars(weighted),
        financial_score=financial_score,
        breakdown=RatingBreakdown(
            mission_openness=_plain(mission_openness),
            hospitality=_plain(hospitality),
            financial=financial_score,
        ),
    )
