"""Configuration management using Pydantic BaseSettings."""
from pathlib import Path
from typing import Tuple
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_number_list(raw: str) -> Tuple[float, ...]:
    """Parse a comma-separated list of numbers ("4, 8, 12, 20")."""
    if not raw or not raw.strip():
        return ()
    return tuple(float(part) for part in raw.split(",") if part.strip())


class Settings(BaseSettings):
    """Application settings with environment variable overrides."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )
    
    # Data paths
    data_dir: Path = Field(default_factory=lambda: Path("./data"))
    out_dir: Path = Field(default_factory=lambda: Path("./out"))
    log_dir: Path = Field(default_factory=lambda: Path("./logs"))
    
    # Database
    db_path: Path = Field(default_factory=lambda: Path("./data/ratings.duckdb"), alias="DB_PATH")
    
    # Rating policy overrides, comma-separated (empty = built-in defaults)
    # Lower bounds of financial tiers 2..5, currency units per attendee
    rating_financial_thresholds: str = Field(default="", alias="RATING_FINANCIAL_THRESHOLDS")
    # mission openness, hospitality, financial
    rating_standard_weights: str = Field(default="", alias="RATING_STANDARD_WEIGHTS")
    rating_no_offering_weights: str = Field(default="", alias="RATING_NO_OFFERING_WEIGHTS")
    
    # Validation sanity limit; larger offerings are logged, not rejected
    offerings_warning_amount: float = Field(default=100000, alias="OFFERINGS_WARNING_AMOUNT")
    
    @property
    def financial_thresholds(self) -> Tuple[float, ...]:
        return parse_number_list(self.rating_financial_thresholds)
    
    @property
    def standard_weights(self) -> Tuple[float, ...]:
        return parse_number_list(self.rating_standard_weights)
    
    @property
    def no_offering_weights(self) -> Tuple[float, ...]:
        return parse_number_list(self.rating_no_offering_weights)
    
    def ensure_dirs(self):
        """Create data, output and log directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
    
    @property
    def duckdb_path(self) -> str:
        """Return DuckDB path as string."""
        return str(self.db_path)


# Global settings instance
settings = Settings()
