"""POST /v1/calculations - Intestate estate distribution endpoint"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Request
from sqlalchemy.orm import Session

from succession_engine.api.v1.schemas import CalculationRequest, CalculationResponse, WarningSchema
from succession_engine.api.v1.mappers import build_contexts, build_parameters
from succession_engine.api.dependencies import get_notification_client, get_request_id
from succession_engine.infrastructure.database.session import get_db
from succession_engine.infrastructure.database.repositories import CalculationRepository
from succession_engine.infrastructure.clients.notifications import NotificationClient
from succession_engine.domain.calculation import InheritanceCalculation
from succession_engine.domain.events import EventOutbox
from succession_engine.domain.exceptions import (
    ComputationError,
    ConcurrencyConflictError,
    NotFoundError,
    ValidationError,
)
from succession_engine.infrastructure.observability.metrics import record_scenario_calculation
from succession_engine.infrastructure.observability.logging import log_calculation

router = APIRouter()


@router.post("/calculations", response_model=CalculationResponse)
async def create_calculation(
    request_body: CalculationRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    notification_client: NotificationClient = Depends(get_notification_client),
):
    """
    Build an inheritance calculation and run every requested scenario.

    Flow:
    1. Translate the request into estate, legal, family and hotchpot contexts
    2. Create the aggregate and one distribution scenario per request entry
    3. Calculate each intestate scenario (a failing scenario leaves the
       aggregate in ERROR but the others still run)
    4. Compare calculated scenarios and pick a recommendation
    5. Persist the snapshot
    6. Publish the outbox events in the background
    """
    start_time = time.time()
    request_id = get_request_id(request)
    requester = request_body.requested_by
    outbox = EventOutbox()

    try:
        # 1-2. Build aggregate and scenarios
        estate, legal, family, hotchpot = build_contexts(request_body)
        calculation = InheritanceCalculation.create(
            estate, legal, family, hotchpot, outbox, performed_by=requester.user_id
        )
        for scenario_request in request_body.scenarios:
            scenario = calculation.create_distribution_scenario(
                name=scenario_request.name,
                scenario_type=scenario_request.scenario_type,
                created_by_user_id=requester.user_id,
                created_by_full_name=requester.full_name,
                outbox=outbox,
                parameters=build_parameters(scenario_request, estate, legal, family),
                description=scenario_request.description,
            )
            if scenario_request.set_as_default:
                calculation.set_default_scenario(scenario.id, requester.user_id)

        # 3. Calculate
        for scenario in calculation.scenarios:
            if not scenario.scenario_type.is_intestate:
                continue
            try:
                results = calculation.calculate_intestate_scenario(scenario.id, outbox, requester.user_id)
                record_scenario_calculation(
                    scenario.applied_regime.value, True, results.residual_amount.minor_units
                )
            except ComputationError as e:
                record_scenario_calculation(None, False)
                logging.warning(
                    f"Scenario calculation failed: {e}",
                    extra={"request_id": request_id, "scenario_id": scenario.id},
                )

        # 4. Compare
        analysis = calculation.generate_comparative_analysis()

        # 5. Persist
        CalculationRepository(db).save(calculation)
        db.commit()

        # 6. Schedule async notification delivery
        background_tasks.add_task(notification_client.publish, outbox.drain())

        duration_ms = (time.time() - start_time) * 1000
        recommended = calculation.summary.get("recommended_scenario_id")
        log_calculation(
            request_id,
            calculation.id,
            calculation.status.value,
            len(calculation.scenarios),
            recommended,
            duration_ms,
        )

        return CalculationResponse(
            calculation_id=calculation.id,
            status=calculation.status.value,
            version=calculation.version,
            recommended_scenario_id=recommended,
            warnings=[WarningSchema(**w.to_dict()) for w in calculation.errors],
            analysis=analysis,
            calculation=calculation.to_dict(),
        )

    except ValidationError as e:
        db.rollback()
        logging.warning(f"Invalid calculation request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except NotFoundError as e:
        db.rollback()
        logging.warning(f"Referenced entity not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except ConcurrencyConflictError as e:
        db.rollback()
        logging.warning(f"Concurrent modification: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
