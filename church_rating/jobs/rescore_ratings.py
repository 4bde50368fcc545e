"""Rescore every visit rating and rebuild church star ratings."""
import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import duckdb
import pandas as pd

from church_rating.config import settings
from church_rating.score.rules import policy_from_settings
from church_rating.score.scorer import (
    persist_church_ratings,
    persist_visit_scores,
    score_visits,
    summarize_churches,
)

logger = logging.getLogger(__name__)

# Columns recomputed by this job; stale copies are dropped before merging
CALCULATED_COLUMNS = ["star_rating", "calculated_star_rating", "financial_score", "missionary_bonus"]

VISIT_RATINGS_QUERY = """
    SELECT vr.*, v.church_id, v.visit_date
    FROM visit_ratings vr
    JOIN visits v ON vr.visit_id = v.id
"""


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName
        }
        if hasattr(record, "duration"):
            log_entry["duration_seconds"] = record.duration
        return json.dumps(log_entry)


def setup_logging(log_dir: Path):
    """JSON lines to logs/rescore_ratings.log, plain text to the console."""
    file_handler = logging.FileHandler(log_dir / "rescore_ratings.log")
    file_handler.setFormatter(JSONFormatter())

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def load_visit_ratings(db_path: str, input_path: Optional[Path] = None) -> pd.DataFrame:
    """
    Load visit ratings joined with church and visit date.

    Args:
        db_path: DuckDB database path
        input_path: Optional CSV export used instead of the database

    Returns:
        DataFrame of visit ratings
    """
    if input_path is not None:
        if not input_path.exists():
            raise FileNotFoundError(f"File not found: {input_path}")
        df = pd.read_csv(input_path, low_memory=False)
        logger.info(f"Loaded {len(df)} rows from {input_path}")
        return df

    conn = duckdb.connect(db_path)
    try:
        df = conn.execute(VISIT_RATINGS_QUERY).df()
    except duckdb.Error as e:
        logger.error(f"Error reading visit ratings from {db_path}: {e}")
        raise
    finally:
        conn.close()
    logger.info(f"Loaded {len(df)} visit ratings from {db_path}")
    return df


def rescore(visits_df: pd.DataFrame, as_of: datetime):
    """
    Rescore visits and summarize churches.

    Returns:
        Tuple of (scores_df, summary_df)
    """
    policy = policy_from_settings(settings)

    score_start = datetime.now()
    scores_df = score_visits(visits_df, policy)
    score_duration = (datetime.now() - score_start).total_seconds()
    logger.info(f"Scoring completed in {score_duration:.2f} seconds", extra={"duration": score_duration})

    inputs = visits_df.drop(columns=[c for c in CALCULATED_COLUMNS if c in visits_df.columns])
    merged = inputs.merge(
        scores_df.drop(columns=["church_id"]),
        on="visit_id",
        how="left"
    )
    summary_df = summarize_churches(merged, as_of)
    return scores_df, summary_df


def main(argv=None):
    """Main entry point for rescoring."""
    parser = argparse.ArgumentParser(description="Recalculate visit and church star ratings")
    parser.add_argument("--input", type=Path, default=None, help="CSV export of visit ratings (default: DuckDB)")
    parser.add_argument("--dry-run", action="store_true", help="Do not write to DuckDB")
    args = parser.parse_args(argv)

    settings.ensure_dirs()
    setup_logging(settings.log_dir)

    start_time = datetime.now()
    logger.info("Starting rating rescore job...")

    visits_df = load_visit_ratings(settings.duckdb_path, args.input)
    if visits_df.empty:
        logger.warning("No visit ratings found to score")
        return

    scores_df, summary_df = rescore(visits_df, as_of=start_time)

    if not args.dry_run:
        if args.input is None:
            persist_visit_scores(scores_df, settings.duckdb_path)
        persist_church_ratings(summary_df, settings.duckdb_path, calculated_at=start_time)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M")
    output_path = settings.out_dir / f"church_star_ratings_{timestamp}.csv"
    summary_df.to_csv(output_path, index=False, encoding='utf-8')
    logger.info(f"Church ratings written to {output_path}")

    total_duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"Rescore complete: {len(scores_df)} visits, {len(summary_df)} churches in {total_duration:.2f} seconds",
        extra={"duration": total_duration}
    )


if __name__ == "__main__":
    main()
