"""Calculation history endpoints"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from succession_engine.api.v1.schemas import (
    CalculationSummaryItem,
    EstateCalculationsResponse,
    HistoryItem,
    HistoryResponse,
)
from succession_engine.infrastructure.database.session import get_db
from succession_engine.infrastructure.database.repositories import CalculationRepository

router = APIRouter()


@router.get("/calculations/{calculation_id}/history", response_model=HistoryResponse)
def get_calculation_history(calculation_id: str, db: Session = Depends(get_db)):
    """
    Retrieve the calculation's history log (last 100 entries, oldest first).
    """
    history = CalculationRepository(db).get_history(calculation_id)

    if history is None:
        raise HTTPException(status_code=404, detail="Calculation not found")

    return HistoryResponse(
        calculation_id=calculation_id,
        history=[HistoryItem(**entry) for entry in history],
    )


@router.get("/estates/{estate_id}/calculations", response_model=EstateCalculationsResponse)
def get_estate_calculations(
    estate_id: str,
    limit: int = Query(10, ge=1, le=50, description="Maximum calculations to return"),
    db: Session = Depends(get_db),
):
    """Most recently updated calculations for an estate"""
    records = CalculationRepository(db).get_calculations_by_estate(estate_id, limit=limit)

    return EstateCalculationsResponse(
        estate_id=estate_id,
        calculations=[
            CalculationSummaryItem(
                calculation_id=r.id,
                status=r.status,
                version=r.version,
                recommended_scenario_id=r.recommended_scenario_id,
                updated_at=r.updated_at.isoformat(),
            )
            for r in records
        ],
    )
