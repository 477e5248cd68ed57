"""DepositLens — Pipeline Orchestrator.

Runs the full data flow:
  ingest raw → (reset) → normalize → relink → aggregate → store report

The batch either completes or rolls back; there is no partial recovery.
"""

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from depositlens.config import settings
from depositlens.connectors.bank_marketing.loader import load_csv
from depositlens.core.errors import RawDataMissingError
from depositlens.core.logging import get_logger
from depositlens.models.analysis_models import (
    ConversionReport,
    NormalizationSummary,
    PipelineRunOutput,
    ReportResult,
)
from depositlens.models.raw_models import RawEvent
from depositlens.analyzer.conversion_engine import (
    conversion_by_age_group,
    conversion_by_contact,
    conversion_by_job,
    conversion_by_month,
    deposits_by_marital,
)
from depositlens.normalizer.normalizer import (
    ensure_derived_empty,
    load_events,
    normalize,
    reset_derived_tables,
)
from depositlens.normalizer.relinker import relink

logger = get_logger("analyzer.pipeline")


def build_report(
    session: Session, age_label_mode: Optional[str] = None
) -> ConversionReport:
    """Run the five breakdowns against the current derived tables."""
    mode = age_label_mode or settings.age_label_mode
    return ConversionReport(
        schema_version=settings.report_schema_version,
        generated_at=datetime.now(timezone.utc).isoformat(),
        age_label_mode=mode,
        by_age_group=conversion_by_age_group(session, mode),
        by_contact=conversion_by_contact(session),
        by_job=conversion_by_job(session),
        by_marital=deposits_by_marital(session),
        by_month=conversion_by_month(session),
    )


def build_derived_tables(
    session: Session, relink_strategy: Optional[str] = None
) -> NormalizationSummary:
    """Normalize and relink the loaded raw events. Does not commit."""
    strategy = relink_strategy or settings.relink_strategy
    ensure_derived_empty(session)

    events = load_events(session)
    derived = normalize(events)
    outcomes, dropped = relink(events, derived, strategy)

    session.add_all(derived.customers)
    session.add_all(derived.campaigns)
    session.flush()
    session.add_all(outcomes)
    session.flush()

    return NormalizationSummary(
        raw_events=len(events),
        customers=len(derived.customers),
        campaigns=len(derived.campaigns),
        outcomes=len(outcomes),
        dropped_events=dropped,
        relink_strategy=strategy,
    )


def run_pipeline(
    session: Session,
    csv_path: Optional[str | Path] = None,
    reset: bool = False,
    relink_strategy: Optional[str] = None,
    age_label_mode: Optional[str] = None,
) -> PipelineRunOutput:
    """Execute the full DepositLens batch."""
    started = time.perf_counter()
    logger.info(
        f"Starting pipeline (csv_path={csv_path}, reset={reset}, "
        f"relink={relink_strategy or settings.relink_strategy})"
    )

    try:
        # ── Step 1: Ingest ──
        if csv_path is not None:
            load_csv(session, csv_path)

        raw_count = session.exec(select(func.count()).select_from(RawEvent)).one()
        if not raw_count:
            raise RawDataMissingError(
                "bank_marketing_raw is empty; load a CSV before normalizing"
            )

        # ── Step 2: Reset ──
        if reset:
            reset_derived_tables(session)

        # ── Step 3: Normalize + Relink ──
        summary = build_derived_tables(session, relink_strategy)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Pipeline aborted, changes rolled back")
        raise

    # ── Step 4: Aggregate ──
    report = build_report(session, age_label_mode)

    # ── Step 5: Store Report ──
    result = ReportResult(
        schema_version=report.schema_version,
        result_json=report.model_dump_json(),
    )
    session.add(result)
    session.commit()

    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    logger.info(
        f"Pipeline complete: {summary.outcomes} outcomes, "
        f"{summary.dropped_events} dropped. "
        f"Stored as report id {result.id}",
        extra={"duration_ms": duration_ms, "dropped_rows": summary.dropped_events},
    )
    return PipelineRunOutput(summary=summary, report=report, report_id=result.id)
