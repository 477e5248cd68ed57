"""DepositLens — Pipeline & Report API Routes."""

import json
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from depositlens.database import get_session
from depositlens.core.errors import (
    DepositLensError,
    DerivedTablesNotEmptyError,
    RawDataAlreadyLoadedError,
)
from depositlens.models.analysis_models import (
    AgeGroupConversion,
    ContactConversion,
    JobConversion,
    MaritalDeposits,
    MonthConversion,
    PipelineRunOutput,
    ReportResult,
)
from depositlens.analyzer.conversion_engine import (
    conversion_by_age_group,
    conversion_by_contact,
    conversion_by_job,
    conversion_by_month,
    deposits_by_marital,
)
from depositlens.analyzer.pipeline import run_pipeline
from depositlens.normalizer.normalizer import reset_derived_tables
from depositlens.core.logging import get_logger

logger = get_logger("api.analysis")

router = APIRouter(tags=["Pipeline"])
reports = APIRouter(prefix="/reports", tags=["Reports"])


# ── Request / Response Models ──


class RunPipelineRequest(BaseModel):
    """Request body for POST /run-pipeline."""

    csv_path: Optional[str] = None
    """Bank marketing CSV to ingest. Omit when raw events are already loaded."""
    reset: bool = False
    """Clear customers, campaigns and outcomes before rebuilding."""
    relink_strategy: Optional[Literal["event_id", "rejoin"]] = None
    age_label_mode: Optional[Literal["corrected", "legacy"]] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"csv_path": "./bank.csv"},
                {"reset": True, "relink_strategy": "rejoin", "age_label_mode": "legacy"},
            ]
        }
    }


class RunPipelineResponse(BaseModel):
    """Response for POST /run-pipeline."""

    status: str = "success"
    result: PipelineRunOutput


def _status_for(error: DepositLensError) -> int:
    if isinstance(error, (DerivedTablesNotEmptyError, RawDataAlreadyLoadedError)):
        return 409
    return 400


# ── Pipeline Endpoints ──


@router.post("/run-pipeline", response_model=RunPipelineResponse)
async def trigger_pipeline(
    request: RunPipelineRequest,
    session: Session = Depends(get_session),
):
    """Ingest (optionally), normalize, relink and aggregate in one batch."""
    try:
        result = run_pipeline(
            session=session,
            csv_path=request.csv_path,
            reset=request.reset,
            relink_strategy=request.relink_strategy,
            age_label_mode=request.age_label_mode,
        )
        return RunPipelineResponse(status="success", result=result)
    except DepositLensError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=400, detail=f"CSV not found: {e.filename}")
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        raise HTTPException(status_code=500, detail=f"Pipeline failed: {str(e)}")


@router.post("/reset")
async def reset_tables(session: Session = Depends(get_session)):
    """Clear the derived tables so the pipeline can be re-run."""
    cleared = reset_derived_tables(session)
    session.commit()
    return {"status": "success", "cleared": cleared}


# ── Stored Reports ──


@reports.get("/latest")
async def get_latest_report(session: Session = Depends(get_session)):
    """Get the most recent stored report."""
    result = session.exec(
        select(ReportResult)
        .order_by(ReportResult.created_at.desc(), ReportResult.id.desc())  # type: ignore
        .limit(1)
    ).first()

    if not result:
        return {"status": "no_data", "message": "No pipeline has been run yet."}

    return {
        "status": "success",
        "id": result.id,
        "created_at": result.created_at.isoformat(),
        "schema_version": result.schema_version,
        "report": json.loads(result.result_json),
    }


@reports.get("")
async def list_reports(
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """Get historical reports, newest first."""
    results = session.exec(
        select(ReportResult)
        .order_by(ReportResult.created_at.desc(), ReportResult.id.desc())  # type: ignore
        .limit(limit)
    ).all()

    return {
        "status": "success",
        "count": len(results),
        "results": [
            {
                "id": r.id,
                "created_at": r.created_at.isoformat(),
                "schema_version": r.schema_version,
                "report": json.loads(r.result_json),
            }
            for r in results
        ],
    }


# ── Live Dashboard Rows ──


@reports.get("/age-group", response_model=List[AgeGroupConversion])
async def age_group_report(
    age_label_mode: Optional[Literal["corrected", "legacy"]] = Query(None),
    session: Session = Depends(get_session),
):
    """Deposit conversion by age bracket."""
    return conversion_by_age_group(session, age_label_mode)


@reports.get("/contact", response_model=List[ContactConversion])
async def contact_report(session: Session = Depends(get_session)):
    """Deposit conversion by contact channel."""
    return conversion_by_contact(session)


@reports.get("/job", response_model=List[JobConversion])
async def job_report(session: Session = Depends(get_session)):
    """Deposit conversion by occupation."""
    return conversion_by_job(session)


@reports.get("/marital", response_model=List[MaritalDeposits])
async def marital_report(session: Session = Depends(get_session)):
    """Positive deposits by marital status."""
    return deposits_by_marital(session)


@reports.get("/month", response_model=List[MonthConversion])
async def month_report(session: Session = Depends(get_session)):
    """Deposit conversion by contact month."""
    return conversion_by_month(session)
