"""/v1/settings and /v1/routes/{route_id}/rates - global rates and route overrides"""

import uuid
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from minibus_ledger.api.dependencies import get_configuration_provider, get_request_id
from minibus_ledger.api.v1.schemas import (
    RateSettingsSchema,
    RateSettingsUpdate,
    RouteRatesResponse,
    RouteRatesUpdate,
)
from minibus_ledger.domain.exceptions import ConfigurationMissingError, InvalidInputError
from minibus_ledger.domain.settlement import validate_share_split
from minibus_ledger.infrastructure.configuration import SETTING_KEYS, ConfigurationProvider
from minibus_ledger.infrastructure.database.models import Route
from minibus_ledger.infrastructure.database.repositories import RouteRepository, SettingRepository
from minibus_ledger.infrastructure.database.session import get_db

router = APIRouter()

SETTING_DESCRIPTIONS = {
    "weekday_minimum_collection": "Minimum gross collection Monday to Saturday",
    "sunday_minimum_collection": "Minimum gross collection on Sundays",
    "driver_base_pay": "Fixed driver pay on days at or above the minimum",
    "operator_share_percent": "Operator percentage of the excess",
    "driver_share_percent": "Driver percentage of the excess",
    "default_coop_contribution": "Cooperative contribution applied on weekdays when none is entered",
    "suspension_threshold": "Below-minimum days that put a driver up for suspension",
}

RATE_NAMES = {key: name for name, key in SETTING_KEYS.items()}


def to_schema(values: Dict[str, object]) -> RateSettingsSchema:
    return RateSettingsSchema(**{key: values[name] for name, key in SETTING_KEYS.items()})


def check_split(operator_share_percent, driver_share_percent) -> None:
    try:
        validate_share_split(operator_share_percent, driver_share_percent)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail={"field": e.field, "message": str(e)})


def check_route_splits(db: Session, global_values: Dict[str, object]) -> None:
    for route in RouteRepository(db).with_share_override():
        operator = route.operator_share_percent
        driver = route.driver_share_percent
        operator = global_values["operator_share_percent"] if operator is None else operator
        driver = global_values["driver_share_percent"] if driver is None else driver
        try:
            validate_share_split(operator, driver)
        except InvalidInputError as e:
            raise HTTPException(
                status_code=422,
                detail={
                    "field": e.field,
                    "route_id": str(route.id),
                    "message": f"Route '{route.name}' would split {operator}/{driver}: {e}",
                },
            )


def load_route(db: Session, route_id: uuid.UUID) -> Route:
    route = RouteRepository(db).get_route(route_id)
    if not route:
        raise HTTPException(status_code=404, detail="Route not found")
    return route


def route_response(route: Route, provider: ConfigurationProvider) -> RouteRatesResponse:
    rates = provider.resolve(route.id)
    effective = {name: getattr(rates, name) for name in SETTING_KEYS}
    return RouteRatesResponse(
        route_id=str(route.id),
        route_name=route.name,
        effective=to_schema(effective),
        overrides={key: getattr(route, key) for key in SETTING_KEYS.values() if getattr(route, key) is not None},
    )


@router.get("/settings", response_model=RateSettingsSchema)
def get_settings(provider: ConfigurationProvider = Depends(get_configuration_provider)):
    """Effective global rates"""
    try:
        return to_schema(provider.global_values())
    except ConfigurationMissingError:
        raise HTTPException(status_code=500, detail="Rate configuration is incomplete")


@router.put("/settings", response_model=RateSettingsSchema)
def update_settings(
    body: RateSettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    provider: ConfigurationProvider = Depends(get_configuration_provider),
):
    """
    Update global rates. Omitted fields keep their value.

    The operator/driver split is checked against the merged result, so
    changing one percentage alone is rejected unless the other already fits.
    Routes overriding only one percentage inherit the other from here, so
    their resulting splits must sum to 100 as well.
    """
    request_id = get_request_id(request)
    changes = body.model_dump(exclude_none=True)

    try:
        values = provider.global_values()
    except ConfigurationMissingError as e:
        logging.warning(f"Overwriting incomplete configuration: {e}", extra={"request_id": request_id})
        values = {}

    for key, value in changes.items():
        values[RATE_NAMES[key]] = value

    missing = [key for name, key in SETTING_KEYS.items() if name not in values]
    if missing:
        raise HTTPException(
            status_code=422,
            detail={"field": missing[0], "message": f"Stored value for {missing[0]} is invalid; provide it"},
        )

    check_split(values["operator_share_percent"], values["driver_share_percent"])
    check_route_splits(db, values)

    SettingRepository(db).upsert_many(
        (key, value, SETTING_DESCRIPTIONS[key]) for key, value in changes.items()
    )
    db.commit()

    logging.info(
        "Global rates updated",
        extra={"request_id": request_id, "changed": sorted(changes)},
    )
    return to_schema(values)


@router.get("/routes/{route_id}/rates", response_model=RouteRatesResponse)
def get_route_rates(
    route_id: uuid.UUID,
    db: Session = Depends(get_db),
    provider: ConfigurationProvider = Depends(get_configuration_provider),
):
    """Effective rates for a route plus the overrides it sets"""
    route = load_route(db, route_id)
    try:
        return route_response(route, provider)
    except ConfigurationMissingError:
        raise HTTPException(status_code=500, detail="Rate configuration is incomplete")


@router.put("/routes/{route_id}/rates", response_model=RouteRatesResponse)
def update_route_rates(
    route_id: uuid.UUID,
    body: RouteRatesUpdate,
    request: Request,
    db: Session = Depends(get_db),
    provider: ConfigurationProvider = Depends(get_configuration_provider),
):
    """Set or clear a route's rate overrides"""
    request_id = get_request_id(request)
    route = load_route(db, route_id)

    unknown = [key for key in body.clear if key not in RATE_NAMES]
    if unknown:
        raise HTTPException(
            status_code=422,
            detail={"field": "clear", "message": f"Unknown rate: {', '.join(unknown)}"},
        )

    overrides: Dict[str, object] = body.model_dump(exclude_none=True, exclude={"clear"})
    overrides.update({key: None for key in body.clear})

    RouteRepository(db).update_rates(route, overrides)

    try:
        rates = provider.resolve(route.id)
        validate_share_split(rates.operator_share_percent, rates.driver_share_percent)

    except InvalidInputError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail={"field": e.field, "message": str(e)})

    except ConfigurationMissingError as e:
        db.rollback()
        logging.error(f"Rate configuration missing: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Rate configuration is incomplete")

    db.commit()
    db.refresh(route)

    logging.info(
        "Route rates updated",
        extra={"request_id": request_id, "route_id": str(route.id), "changed": sorted(overrides)},
    )
    return route_response(route, provider)
