"""Scoring weights, financial tiers and the rating policy value."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Tuple

# Star rating bounds
MIN_STARS = 1
MAX_STARS = 5

# Subjective rating bounds (mission openness, hospitality)
MIN_RATING = 1
MAX_RATING = 5

# Financial sub-score bounds; 0 means "no offering made"
NO_OFFERING_SCORE = 0
MAX_FINANCIAL_SCORE = 5

# Missionary support no longer feeds the star rating; field kept for API compatibility
MISSIONARY_BONUS = 0


@dataclass(frozen=True)
class RatingWeights:
    """Weights for the three scored inputs. Must sum to 1."""
    mission_openness: Decimal
    hospitality: Decimal
    financial: Decimal

    def total(self) -> Decimal:
        return self.mission_openness + self.hospitality + self.financial


# Offering made: all three inputs count
STANDARD_WEIGHTS = RatingWeights(
    mission_openness=Decimal("0.35"),
    hospitality=Decimal("0.30"),
    financial=Decimal("0.35"),
)

# No offering: financial weight is folded into the two subjective ratings
NO_OFFERING_WEIGHTS = RatingWeights(
    mission_openness=Decimal("0.55"),
    hospitality=Decimal("0.45"),
    financial=Decimal("0"),
)

# Lower bound (currency units per attendee) of financial tiers 2, 3, 4 and 5.
# Any positive offering below the first bound is tier 1.
FINANCIAL_THRESHOLDS: Tuple[Decimal, ...] = (
    Decimal("4"),    # 2: below average
    Decimal("8"),    # 3: average
    Decimal("12"),   # 4: good
    Decimal("20"),   # 5: excellent
)


@dataclass(frozen=True)
class RatingPolicy:
    """
    Immutable configuration for the rating engine.

    Raises:
        ValueError: If a weight set does not sum to 1, a weight is negative,
            or the thresholds are not four strictly increasing positive numbers
    """
    standard_weights: RatingWeights = STANDARD_WEIGHTS
    no_offering_weights: RatingWeights = NO_OFFERING_WEIGHTS
    financial_thresholds: Tuple[Decimal, ...] = field(default=FINANCIAL_THRESHOLDS)

    def __post_init__(self):
        for name, weights in (("standard", self.standard_weights),
                              ("no-offering", self.no_offering_weights)):
            if min(weights.mission_openness, weights.hospitality, weights.financial) < 0:
                raise ValueError(f"{name} weights cannot be negative")
            if weights.total() != Decimal("1"):
                raise ValueError(f"{name} weights must sum to 1.0, got {weights.total()}")
        if self.no_offering_weights.financial != 0:
            raise ValueError("no-offering weights must not weight the financial score")

        thresholds = tuple(Decimal(str(t)) for t in self.financial_thresholds)
        if len(thresholds) != MAX_FINANCIAL_SCORE - 1:
            raise ValueError(
                f"Expected {MAX_FINANCIAL_SCORE - 1} financial thresholds, got {len(thresholds)}"
            )
        if thresholds[0] <= 0 or any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError(f"Financial thresholds must be positive and increasing: {thresholds}")
        object.__setattr__(self, "financial_thresholds", thresholds)


DEFAULT_POLICY = RatingPolicy()


def _weights_from(values, fallback: RatingWeights) -> RatingWeights:
    if not values:
        return fallback
    if len(values) != 3:
        raise ValueError(f"Expected 3 weights (mission openness, hospitality, financial), got {len(values)}")
    mission, hospitality, financial = (Decimal(str(v)) for v in values)
    return RatingWeights(mission_openness=mission, hospitality=hospitality, financial=financial)


def policy_from_settings(settings) -> RatingPolicy:
    """
    Build a rating policy from application settings.

    Unset overrides fall back to the built-in constants.

    Args:
        settings: Settings instance (see church_rating.config)

    Returns:
        RatingPolicy
    """
    thresholds = settings.financial_thresholds or FINANCIAL_THRESHOLDS
    return RatingPolicy(
        standard_weights=_weights_from(settings.standard_weights, STANDARD_WEIGHTS),
        no_offering_weights=_weights_from(settings.no_offering_weights, NO_OFFERING_WEIGHTS),
        financial_thresholds=tuple(Decimal(str(t)) for t in thresholds),
    )
