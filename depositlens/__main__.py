"""DepositLens — one-shot batch run.

Loads `settings.input_csv_path` into an empty database, builds the derived
tables and writes the report JSON to `settings.report_output_path`. Stdout
carries only the JSON log lines.
"""

import sys
from pathlib import Path

from sqlmodel import Session

from depositlens.config import settings
from depositlens.core.errors import DepositLensError
from depositlens.core.logging import get_logger
from depositlens.database import engine, init_db
from depositlens.analyzer.pipeline import run_pipeline

logger = get_logger("batch")


def main() -> int:
    init_db(engine)
    with Session(engine) as session:
        try:
            output = run_pipeline(session, csv_path=settings.input_csv_path)
        except (DepositLensError, FileNotFoundError) as e:
            logger.error(f"Batch run failed: {e}")
            return 1

    report_path = Path(settings.report_output_path)
    report_path.write_text(output.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"Report {output.report_id} written to {report_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
