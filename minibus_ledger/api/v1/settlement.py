"""POST /v1/settlement/preview - settle an entry without saving it"""

import time
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from minibus_ledger.api.dependencies import get_configuration_provider, get_request_id
from minibus_ledger.api.v1.schemas import SettlementPreviewRequest, SettlementResponse
from minibus_ledger.domain.exceptions import ConfigurationMissingError, InvalidInputError
from minibus_ledger.domain.settlement import build_settlement_input, settle
from minibus_ledger.infrastructure.configuration import ConfigurationProvider
from minibus_ledger.infrastructure.database.repositories import RouteRepository
from minibus_ledger.infrastructure.database.session import get_db
from minibus_ledger.infrastructure.observability.logging import log_settlement

router = APIRouter()


@router.post("/settlement/preview", response_model=SettlementResponse)
def preview_settlement(
    body: SettlementPreviewRequest,
    request: Request,
    db: Session = Depends(get_db),
    provider: ConfigurationProvider = Depends(get_configuration_provider),
):
    """
    Show the shares a daily entry would settle to.

    Uses the same engine as record creation, so the entry form never
    re-derives the formula on its own.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    if body.route_id is not None and RouteRepository(db).get_route(body.route_id) is None:
        raise HTTPException(status_code=404, detail="Route not found")

    try:
        rates = provider.resolve(body.route_id)
        entry = build_settlement_input(
            body.date,
            rates,
            gross_collection=body.gross_collection,
            diesel_cost=body.diesel_cost,
            cooperative_contribution=body.cooperative_contribution,
            other_expenses=body.other_expenses,
            manual_driver_share=body.manual_driver_share,
        )
        result = settle(entry, rates)

    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail={"field": e.field, "message": str(e)})

    except ConfigurationMissingError as e:
        logging.error(f"Rate configuration missing: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Rate configuration is incomplete")

    log_settlement(request_id, None, result, (time.time() - start_time) * 1000)

    return SettlementResponse(
        branch=result.branch,
        requires_manual_driver_share=result.is_below_minimum,
        minimum_collection=result.minimum_collection,
        excess_collection=result.excess_collection,
        driver_share=result.driver_share,
        operator_share=result.operator_share,
        net_residual=result.net_residual,
    )
