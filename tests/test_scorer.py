"""Tests for batch scoring, church summaries and DuckDB persistence."""
from datetime import datetime

import duckdb
import pandas as pd
import pytest

from church_rating.jobs.rescore_ratings import load_visit_ratings, rescore
from church_rating.score.scorer import (
    SUMMARY_COLUMNS,
    persist_church_ratings,
    persist_visit_scores,
    score_visits,
    summarize_churches,
)

AS_OF = datetime(2025, 9, 1)


@pytest.fixture
def visits_df():
    return pd.DataFrame([
        # church 1: 3 stars, then 5 stars
        {"visit_id": 1, "church_id": 1, "mission_openness_rating": 4, "hospitality_rating": 3,
         "missionary_support_count": 2, "offerings_amount": 500.0, "church_members": 100,
         "attendees_count": 80, "visit_date": "2025-08-20"},
        {"visit_id": 2, "church_id": 1, "mission_openness_rating": 5, "hospitality_rating": 5,
         "missionary_support_count": 4, "offerings_amount": 2000.0, "church_members": 200,
         "attendees_count": 150, "visit_date": "2025-05-01"},
        # church 2: 1 star, no offering
        {"visit_id": 3, "church_id": 2, "mission_openness_rating": 1, "hospitality_rating": 1,
         "missionary_support_count": 0, "offerings_amount": 0.0, "church_members": 10,
         "attendees_count": 5, "visit_date": "2025-08-30"},
    ])


class TestScoreVisits:
    """Test batch scoring."""
    
    def test_scores(self, visits_df):
        """Test each row is scored by the engine."""
        scores = score_visits(visits_df)
        assert list(scores["visit_id"]) == [1, 2, 3]
        assert list(scores["star_rating"]) == [3, 5, 1]
        assert list(scores["financial_score"]) == [2, 4, 0]
        assert set(scores["missionary_bonus"]) == {0}
    
    def test_empty_frame(self):
        """Test no rows gives an empty result with the expected columns."""
        scores = score_visits(pd.DataFrame())
        assert scores.empty
        assert "star_rating" in scores.columns
    
    def test_missing_values_do_not_raise(self):
        """Test NaN cells are coerced by the engine."""
        df = pd.DataFrame([{"visit_id": 1, "church_id": 1, "mission_openness_rating": 4,
                            "hospitality_rating": None, "offerings_amount": float("nan")}])
        scores = score_visits(df)
        # 0.55 * 4 + 0.45 * 0 = 2.2
        assert scores.loc[0, "star_rating"] == 2
        assert scores.loc[0, "financial_score"] == 0


class TestSummarizeChurches:
    """Test church summaries from scored visits."""
    
    def test_one_row_per_church(self, visits_df):
        """Test grouping and averages."""
        _, summary = rescore(visits_df, as_of=AS_OF)
        assert list(summary.columns) == SUMMARY_COLUMNS
        assert list(summary["church_id"]) == [1, 2]
        
        church_1 = summary.iloc[0]
        assert church_1["average_stars"] == 4.0
        assert church_1["total_visits"] == 2
        assert church_1["visits_last_30_days"] == 1
        assert church_1["missionary_support_count"] == 2
        assert church_1["total_offerings"] == 2500.0
        
        church_2 = summary.iloc[1]
        assert church_2["average_stars"] == 1.0
        assert church_2["avg_financial_generosity"] == 0.0
    
    def test_stale_scores_replaced(self, visits_df):
        """Test previously stored scores are recomputed, not reused."""
        stale = visits_df.assign(calculated_star_rating=1, financial_score=5, missionary_bonus=2)
        scores, summary = rescore(stale, as_of=AS_OF)
        assert list(scores["star_rating"]) == [3, 5, 1]
        assert summary.iloc[0]["avg_financial_generosity"] == 3.0
    
    def test_undated_rows_skipped(self, visits_df):
        """Test visits without a date are left out of summaries."""
        scored = visits_df.merge(score_visits(visits_df).drop(columns=["church_id"]), on="visit_id")
        scored.loc[scored["visit_id"] == 3, "visit_date"] = None
        summary = summarize_churches(scored, AS_OF)
        assert list(summary["church_id"]) == [1]


class TestPersistence:
    """Test DuckDB persistence."""
    
    def test_persist_church_ratings_upserts(self, visits_df, tmp_path):
        """Test summaries are written and replaced on rerun."""
        db_path = str(tmp_path / "ratings.duckdb")
        _, summary = rescore(visits_df, as_of=AS_OF)
        
        persist_church_ratings(summary, db_path, calculated_at=AS_OF)
        persist_church_ratings(summary, db_path, calculated_at=AS_OF)
        
        conn = duckdb.connect(db_path)
        rows = conn.execute(
            "SELECT church_id, average_stars, total_visits, last_calculated FROM church_star_ratings ORDER BY church_id"
        ).fetchall()
        conn.close()
        
        assert rows == [(1, 4.0, 2, AS_OF), (2, 1.0, 1, AS_OF)]
    
    def test_load_and_update_visit_ratings(self, tmp_path):
        """Test loading from DuckDB and writing scores back."""
        db_path = str(tmp_path / "ratings.duckdb")
        conn = duckdb.connect(db_path)
        conn.execute("CREATE TABLE visits (id INTEGER PRIMARY KEY, church_id INTEGER, visit_date TIMESTAMP)")
        conn.execute("""
            CREATE TABLE visit_ratings (
                visit_id INTEGER PRIMARY KEY,
                mission_openness_rating INTEGER,
                hospitality_rating INTEGER,
                missionary_support_count INTEGER,
                offerings_amount DECIMAL(10, 2),
                church_members INTEGER,
                attendees_count INTEGER,
                financial_score INTEGER,
                missionary_bonus INTEGER,
                calculated_star_rating INTEGER
            )
        """)
        conn.execute("INSERT INTO visits VALUES (10, 7, TIMESTAMP '2025-08-15 10:00:00')")
        conn.execute("INSERT INTO visit_ratings VALUES (10, 4, 3, 1, 500.00, 100, 80, 0, 0, 1)")
        conn.close()
        
        visits = load_visit_ratings(db_path)
        assert len(visits) == 1
        assert visits.loc[0, "church_id"] == 7
        
        scores, summary = rescore(visits, as_of=AS_OF)
        persist_visit_scores(scores, db_path)
        
        conn = duckdb.connect(db_path)
        row = conn.execute(
            "SELECT calculated_star_rating, financial_score, missionary_bonus FROM visit_ratings WHERE visit_id = 10"
        ).fetchone()
        conn.close()
        assert row == (3, 2, 0)
        assert summary.iloc[0]["average_stars"] == 3.0
    
    def test_load_missing_csv(self, tmp_path):
        """Test a missing CSV export raises."""
        with pytest.raises(FileNotFoundError):
            load_visit_ratings(str(tmp_path / "unused.duckdb"), tmp_path / "missing.csv")
    
    def test_load_csv(self, visits_df, tmp_path):
        """Test loading a CSV export."""
        csv_path = tmp_path / "visit_ratings.csv"
        visits_df.to_csv(csv_path, index=False)
        loaded = load_visit_ratings(str(tmp_path / "unused.duckdb"), csv_path)
        assert len(loaded) == 3
