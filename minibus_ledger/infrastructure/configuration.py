"""Rate configuration resolution: settings defaults, stored globals, then route overrides"""

import uuid
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from minibus_ledger.config import Settings, settings
from minibus_ledger.domain.exceptions import ConfigurationMissingError, InvalidInputError
from minibus_ledger.domain.models import RateConfiguration
from minibus_ledger.infrastructure.database.models import Route
from minibus_ledger.infrastructure.database.repositories import RouteRepository, SettingRepository
from minibus_ledger.utils.money import parse_amount

# Rate name -> key in the global `setting` table, also the route override column
SETTING_KEYS = {
    "weekday_minimum": "weekday_minimum_collection",
    "sunday_minimum": "sunday_minimum_collection",
    "driver_base_pay": "driver_base_pay",
    "operator_share_percent": "operator_share_percent",
    "driver_share_percent": "driver_share_percent",
    "default_cooperative_contribution": "default_coop_contribution",
    "suspension_threshold": "suspension_threshold",
}


def defaults_from_settings(config: Settings) -> Dict[str, object]:
    return {
        "weekday_minimum": config.default_weekday_minimum_collection,
        "sunday_minimum": config.default_sunday_minimum_collection,
        "driver_base_pay": config.default_driver_base_pay,
        "operator_share_percent": config.default_operator_share_percent,
        "driver_share_percent": config.default_driver_share_percent,
        "default_cooperative_contribution": config.default_cooperative_contribution,
        "suspension_threshold": config.default_suspension_threshold,
    }


class ConfigurationProvider:
    """Resolves the effective RateConfiguration for a route"""

    def __init__(self, db: Session, defaults: Settings | None = None):
        self.db = db
        self.defaults = defaults or settings

    def resolve(self, route_id: Optional[uuid.UUID] = None) -> RateConfiguration:
        """
        Resolve rates for a route, or the global rates when route_id is None.

        Raises:
            ConfigurationMissingError: a stored value is empty or unparsable,
                or the route does not exist
        """
        values = self.global_values()

        if route_id is not None:
            route = RouteRepository(self.db).get_route(route_id)
            if route is None:
                raise ConfigurationMissingError(f"route:{route_id}", "has no such route")
            values.update(self._route_overrides(route))

        return RateConfiguration(
            weekday_minimum=values["weekday_minimum"],
            sunday_minimum=values["sunday_minimum"],
            driver_base_pay=values["driver_base_pay"],
            operator_share_percent=values["operator_share_percent"],
            driver_share_percent=values["driver_share_percent"],
            suspension_threshold=values["suspension_threshold"],
            default_cooperative_contribution=values["default_cooperative_contribution"],
        )

    def global_values(self) -> Dict[str, object]:
        """Settings defaults overlaid with the stored global settings"""
        values = defaults_from_settings(self.defaults)
        stored = SettingRepository(self.db).as_dict()

        for name, key in SETTING_KEYS.items():
            if key in stored:
                values[name] = self._parse_stored(name, key, stored[key])

        return values

    def _route_overrides(self, route: Route) -> Dict[str, object]:
        overrides = {}
        for name, column in SETTING_KEYS.items():
            value = getattr(route, column)
            if value is not None:
                overrides[name] = int(value) if name == "suspension_threshold" else Decimal(value)
        return overrides

    @staticmethod
    def _parse_stored(name: str, key: str, raw: Optional[str]) -> object:
        if raw is None or not str(raw).strip():
            raise ConfigurationMissingError(key, "is stored empty")
        try:
            amount = parse_amount(raw, key)
        except InvalidInputError as e:
            raise ConfigurationMissingError(key, f"has unparsable value {raw!r}") from e

        if name == "suspension_threshold":
            if amount != amount.to_integral_value():
                raise ConfigurationMissingError(key, f"must be a whole number, got {raw!r}")
            return int(amount)
        return amount
