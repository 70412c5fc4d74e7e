"""GET /v1/calculations/{calculation_id} - Fetch the latest calculation snapshot"""

from typing import Any, Dict
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from succession_engine.infrastructure.database.session import get_db
from succession_engine.infrastructure.database.repositories import CalculationRepository

router = APIRouter()


@router.get("/calculations/{calculation_id}", response_model=Dict[str, Any])
def get_calculation(calculation_id: str, db: Session = Depends(get_db)):
    """
    Retrieve the stored aggregate snapshot.

    Returns:
        Scenarios with shares, results and reports, plus status, summary and version
    """
    snapshot = CalculationRepository(db).get_snapshot(calculation_id)

    if snapshot is None:
        raise HTTPException(status_code=404, detail="Calculation not found")

    return snapshot
