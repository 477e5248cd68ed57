"""DepositLens — Central Configuration via Pydantic Settings."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── Ingestion ──
    input_csv_path: str = "./bank.csv"
    csv_delimiter: str = ""  # Empty → sniff from the header line

    # ── Normalization ──
    relink_strategy: Literal["event_id", "rejoin"] = "event_id"

    # ── Reporting ──
    age_label_mode: Literal["corrected", "legacy"] = "corrected"
    report_schema_version: str = "1.0.0"

    # ── App ──
    log_level: str = "INFO"
    report_output_path: str = "./depositlens_report.json"

    @property
    def effective_database_url(self) -> str:
        """Return the configured URL, otherwise a local SQLite file."""
        if self.database_url:
            return self.database_url
        return "sqlite:///./depositlens.db"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "DEPOSITLENS_",
    }


settings = Settings()
