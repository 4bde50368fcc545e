"""Church-level rating summary built from stored visit ratings."""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional, Sequence

from church_rating.score.engine import to_amount


@dataclass(frozen=True)
class StoredRating:
    """A persisted visit rating joined with its visit date."""
    star_rating: int
    mission_openness_rating: int
    hospitality_rating: int
    financial_score: int
    offerings_amount: Decimal
    visit_date: datetime
    missionary_support_count: int = 0


@dataclass(frozen=True)
class ChurchRatingSummary:
    average_stars: Optional[float]
    total_visits: int
    visits_last_30_days: int
    visits_last_90_days: int
    avg_mission_openness: Optional[float]
    avg_hospitality: Optional[float]
    avg_financial_generosity: Optional[float]
    total_offerings: float
    avg_offerings_per_visit: float
    missionary_support_count: int
    last_visit_date: Optional[datetime]


EMPTY_SUMMARY = ChurchRatingSummary(
    average_stars=None,
    total_visits=0,
    visits_last_30_days=0,
    visits_last_90_days=0,
    avg_mission_openness=None,
    avg_hospitality=None,
    avg_financial_generosity=None,
    total_offerings=0.0,
    avg_offerings_per_visit=0.0,
    missionary_support_count=0,
    last_visit_date=None,
)


def _mean(values: Sequence, places: str) -> float:
    total = sum((to_amount(v) for v in values), Decimal("0"))
    return float((total / len(values)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


def summarize_church_ratings(ratings: Sequence[StoredRating], as_of: datetime) -> ChurchRatingSummary:
    """
    Summarize every rated visit of one church.

    The star rating of each visit is the unit of aggregation: average_stars
    is their mean, to one decimal. Missionary support is taken from the most
    recent visit.

    Args:
        ratings: Stored ratings for the church
        as_of: Reference time for the 30/90 day visit counts

    Returns:
        ChurchRatingSummary (EMPTY_SUMMARY when there are no ratings)
    """
    if not ratings:
        return EMPTY_SUMMARY

    latest = max(ratings, key=lambda r: r.visit_date)
    total_offerings = sum((to_amount(r.offerings_amount) for r in ratings), Decimal("0"))
    per_visit = (total_offerings / len(ratings)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    return ChurchRatingSummary(
        average_stars=_mean([r.star_rating for r in ratings], "0.1"),
        total_visits=len(ratings),
        visits_last_30_days=sum(1 for r in ratings if r.visit_date >= as_of - timedelta(days=30)),
        visits_last_90_days=sum(1 for r in ratings if r.visit_date >= as_of - timedelta(days=90)),
        avg_mission_openness=_mean([r.mission_openness_rating for r in ratings], "0.01"),
        avg_hospitality=_mean([r.hospitality_rating for r in ratings], "0.01"),
        avg_financial_generosity=_mean([r.financial_score for r in ratings], "0.01"),
        total_offerings=float(total_offerings),
        avg_offerings_per_visit=float(per_visit),
        missionary_support_count=int(to_amount(latest.missionary_support_count)),
        last_visit_date=latest.visit_date,
    )


def rating_distribution(summaries: Iterable[ChurchRatingSummary]) -> Dict[int, int]:
    """Count churches per rounded average star value, skipping unrated churches."""
    counts = Counter(
        int(Decimal(str(s.average_stars)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        for s in summaries
        if s.average_stars is not None
    )
    return dict(sorted(counts.items()))
