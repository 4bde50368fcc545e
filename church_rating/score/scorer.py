"""Batch visit scoring and church summaries."""
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Optional

import duckdb
import pandas as pd

from church_rating.score.aggregate import StoredRating, summarize_church_ratings
from church_rating.score.engine import VisitObservation, calculate_visit_rating
from church_rating.score.rules import DEFAULT_POLICY, RatingPolicy

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "church_id",
    "average_stars",
    "missionary_support_count",
    "total_visits",
    "visits_last_30_days",
    "visits_last_90_days",
    "avg_mission_openness",
    "avg_hospitality",
    "avg_financial_generosity",
    "total_offerings",
    "avg_offerings_per_visit",
    "last_visit_date",
]


def score_visits(df: pd.DataFrame, policy: RatingPolicy = DEFAULT_POLICY) -> pd.DataFrame:
    """
    Score all visit ratings in DataFrame.

    Args:
        df: DataFrame with visit_ratings columns (snake_case)
        policy: Rating policy

    Returns:
        DataFrame with visit_id, church_id, star_rating, financial_score, missionary_bonus columns
    """
    logger.info(f"Scoring {len(df)} visits...")

    results = []
    for visit in df.to_dict(orient="records"):
        result = calculate_visit_rating(VisitObservation.from_dict(visit), policy)

        results.append({
            "visit_id": visit.get("visit_id"),
            "church_id": visit.get("church_id"),
            "star_rating": result.star_rating,
            "financial_score": result.financial_score,
            "missionary_bonus": result.missionary_bonus,
        })

    return pd.DataFrame(results, columns=["visit_id", "church_id", "star_rating", "financial_score", "missionary_bonus"])


def summarize_churches(df: pd.DataFrame, as_of: datetime) -> pd.DataFrame:
    """
    Build one summary row per church.

    Args:
        df: Scored visits with their inputs and visit_date
        as_of: Reference time for recent-visit counts

    Returns:
        DataFrame with SUMMARY_COLUMNS
    """
    dated = df.assign(visit_date=pd.to_datetime(df["visit_date"], errors="coerce"))
    undated = dated["visit_date"].isna().sum()
    if undated:
        logger.warning(f"Skipping {undated} visit ratings without a visit date")
        dated = dated.dropna(subset=["visit_date"])

    rows = []
    for church_id, group in dated.groupby("church_id", sort=True):
        ratings = [
            StoredRating(
                star_rating=r.star_rating,
                mission_openness_rating=r.mission_openness_rating,
                hospitality_rating=r.hospitality_rating,
                financial_score=r.financial_score,
                offerings_amount=r.offerings_amount,
                visit_date=r.visit_date.to_pydatetime(),
                missionary_support_count=getattr(r, "missionary_support_count", 0),
            )
            for r in group.itertuples(index=False)
        ]
        summary = summarize_church_ratings(ratings, as_of)
        rows.append({"church_id": church_id, **asdict(summary)})

    summary_df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    logger.info(f"Summarized {len(summary_df)} churches")
    return summary_df


def persist_visit_scores(scores_df: pd.DataFrame, db_path: str):
    """Write recalculated scores back onto the visit_ratings table."""
    conn = duckdb.connect(db_path)
    try:
        conn.register("scores_df", scores_df)
        conn.execute("""
            UPDATE visit_ratings
            SET calculated_star_rating = s.star_rating,
                financial_score = s.financial_score,
                missionary_bonus = s.missionary_bonus
            FROM scores_df AS s
            WHERE visit_ratings.visit_id = s.visit_id
        """)
    finally:
        conn.close()
    logger.info(f"Updated {len(scores_df)} visit ratings")


def persist_church_ratings(summary_df: pd.DataFrame, db_path: str, calculated_at: Optional[datetime] = None):
    """
    Upsert church summaries into DuckDB.

    Args:
        summary_df: Output of summarize_churches
        db_path: DuckDB database path
        calculated_at: Timestamp stored as last_calculated (default: now)
    """
    calculated_at = calculated_at or datetime.now()

    conn = duckdb.connect(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS church_star_ratings (
                church_id INTEGER PRIMARY KEY,
                average_stars DOUBLE,
                missionary_support_count INTEGER,
                total_visits INTEGER,
                visits_last_30_days INTEGER,
                visits_last_90_days INTEGER,
                avg_mission_openness DOUBLE,
                avg_hospitality DOUBLE,
                avg_financial_generosity DOUBLE,
                total_offerings DOUBLE,
                avg_offerings_per_visit DOUBLE,
                last_visit_date TIMESTAMP,
                last_calculated TIMESTAMP
            )
        """)

        conn.register("summary_df", summary_df[SUMMARY_COLUMNS])
        conn.execute(
            f"""
            INSERT OR REPLACE INTO church_star_ratings
            SELECT {", ".join(SUMMARY_COLUMNS)}, ?::TIMESTAMP FROM summary_df
            """,
            [calculated_at],
        )
    finally:
        conn.close()

    logger.info(f"Persisted {len(summary_df)} church ratings to DuckDB.")
