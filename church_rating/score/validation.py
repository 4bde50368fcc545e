"""Validation of rating submissions before they reach the engine."""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from church_rating.config import settings
from church_rating.score.rules import MAX_RATING, MIN_RATING

logger = logging.getLogger(__name__)

# Attendees above members * this factor is flagged as implausible
MAX_ATTENDEES_PER_MEMBER = 3


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    message_ro: Optional[str] = None


@dataclass
class ValidationResult:
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str, message_ro: Optional[str] = None):
        self.errors.append(FieldError(field_name, message, message_ro))


class RatingValidationError(ValueError):
    """Raised when a rating submission fails validation."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except OverflowError:
        # ints beyond float range
        return float("inf") if value > 0 else float("-inf")
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number


def _get(data: Mapping[str, Any], snake: str, camel: str) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel)


def validate_rating_data(data: Mapping[str, Any]) -> ValidationResult:
    """
    Validate a rating submission.

    Accepts snake_case or camelCase keys.

    Args:
        data: Submitted rating fields

    Returns:
        ValidationResult listing every failed rule
    """
    result = ValidationResult()

    mission = _number(_get(data, "mission_openness_rating", "missionOpennessRating"))
    if mission is None or not MIN_RATING <= mission <= MAX_RATING:
        result.add(
            "missionOpennessRating",
            "Mission openness rating must be between 1-5",
            "Evaluarea deschiderii pentru misiune trebuie să fie între 1-5",
        )

    hospitality = _number(_get(data, "hospitality_rating", "hospitalityRating"))
    if hospitality is None or not MIN_RATING <= hospitality <= MAX_RATING:
        result.add(
            "hospitalityRating",
            "Hospitality rating must be between 1-5",
            "Evaluarea ospitalității trebuie să fie între 1-5",
        )

    support = _number(_get(data, "missionary_support_count", "missionarySupportCount"))
    if support is not None and support < 0:
        result.add(
            "missionarySupportCount",
            "Missionary support count cannot be negative",
            "Numărul de misionari susținuți nu poate fi negativ",
        )

    offerings = _number(_get(data, "offerings_amount", "offeringsAmount"))
    if offerings is not None and offerings < 0:
        result.add(
            "offeringsAmount",
            "Offerings amount cannot be negative",
            "Suma ofrandelor nu poate fi negativă",
        )
    elif offerings is not None and offerings > settings.offerings_warning_amount:
        logger.warning(f"Offerings amount seems unusually high: {offerings}")

    members = _number(_get(data, "church_members", "churchMembers"))
    if members is None or members < 1:
        result.add(
            "churchMembers",
            "Church must have at least 1 member",
            "Biserica trebuie să aibă cel puțin 1 membru",
        )

    attendees = _number(_get(data, "attendees_count", "attendeesCount"))
    if attendees is None or attendees < 1:
        result.add(
            "attendeesCount",
            "Must have at least 1 attendee",
            "Trebuie să fie cel puțin 1 participant",
        )

    if attendees is not None and members is not None and attendees > members * MAX_ATTENDEES_PER_MEMBER:
        result.add(
            "attendeesCount",
            "Attendees count seems unusually high compared to church members",
            "Numărul de participanți pare neobișnuit de mare comparativ cu membrii bisericii",
        )

    duration_raw = _get(data, "visit_duration_minutes", "visitDurationMinutes")
    if duration_raw is not None:
        duration = _number(duration_raw)
        if duration is None or duration <= 0:
            result.add(
                "visitDurationMinutes",
                "Visit duration must be positive",
                "Durata vizitei trebuie să fie pozitivă",
            )

    if not result.is_valid:
        logger.info(f"Rating submission rejected: {[e.field for e in result.errors]}")
    return result


def validate_visit_for_rating(
    is_already_rated: bool,
    missionary_id: str,
    visit_missionary_id: str,
) -> ValidationResult:
    """Check that the visit can be rated by this missionary."""
    result = ValidationResult()

    if is_already_rated:
        result.add(
            "visitId",
            "This visit has already been rated",
            "Această vizită a fost deja evaluată",
        )

    if missionary_id != visit_missionary_id:
        result.add(
            "missionaryId",
            "You can only rate visits you personally conducted",
            "Poți evalua doar vizitele pe care le-ai efectuat personal",
        )

    return result


def get_error_message(error: FieldError, prefer_romanian: bool = False) -> str:
    """Error text in the preferred language."""
    if prefer_romanian and error.message_ro:
        return error.message_ro
    return error.message


def ensure_valid(result: ValidationResult) -> None:
    """
    Raise if validation failed.

    Raises:
        RatingValidationError: If the result has errors
    """
    if not result.is_valid:
        raise RatingValidationError(result.errors)
