"""Integration tests for rate resolution against the database"""

import uuid
import pytest
from decimal import Decimal
from minibus_ledger.domain.exceptions import ConfigurationMissingError
from minibus_ledger.infrastructure.configuration import ConfigurationProvider
from minibus_ledger.infrastructure.database.models import Setting
from minibus_ledger.infrastructure.database.repositories import RouteRepository, SettingRepository


def test_defaults_when_nothing_stored(db):
    rates = ConfigurationProvider(db).resolve()

    assert rates.weekday_minimum == Decimal("6000")
    assert rates.sunday_minimum == Decimal("5000")
    assert rates.driver_base_pay == Decimal("800")
    assert rates.operator_share_percent == Decimal("60")
    assert rates.driver_share_percent == Decimal("40")
    assert rates.default_cooperative_contribution == 0
    assert rates.suspension_threshold == 3


def test_stored_settings_override_defaults(db):
    SettingRepository(db).upsert_many(
        [
            ("weekday_minimum_collection", "6500", None),
            ("default_coop_contribution", "1852", "Weekday coop"),
            ("suspension_threshold", "4", None),
        ]
    )
    db.commit()

    rates = ConfigurationProvider(db).resolve()

    assert rates.weekday_minimum == Decimal("6500")
    assert rates.default_cooperative_contribution == Decimal("1852")
    assert rates.suspension_threshold == 4
    assert rates.sunday_minimum == Decimal("5000")


def test_upsert_updates_existing_setting(db):
    repo = SettingRepository(db)
    repo.upsert_many([("driver_base_pay", "800", "Base pay")])
    repo.upsert_many([("driver_base_pay", "900", None)])
    db.commit()

    setting = db.get(Setting, "driver_base_pay")
    assert setting.value == "900"
    assert setting.description == "Base pay"


def test_route_overrides_win_over_globals(db, fleet):
    route = fleet["route"]
    RouteRepository(db).update_rates(
        route, {"weekday_minimum_collection": Decimal("7000"), "suspension_threshold": 5}
    )
    db.commit()

    provider = ConfigurationProvider(db)
    route_rates = provider.resolve(route.id)
    global_rates = provider.resolve()

    assert route_rates.weekday_minimum == Decimal("7000")
    assert route_rates.suspension_threshold == 5
    assert route_rates.sunday_minimum == Decimal("5000")
    assert global_rates.weekday_minimum == Decimal("6000")


def test_cleared_override_falls_back(db, fleet):
    route = fleet["route"]
    repo = RouteRepository(db)
    repo.update_rates(route, {"driver_base_pay": Decimal("950")})
    repo.update_rates(route, {"driver_base_pay": None})
    db.commit()

    assert ConfigurationProvider(db).resolve(route.id).driver_base_pay == Decimal("800")


def test_unknown_route(db):
    with pytest.raises(ConfigurationMissingError):
        ConfigurationProvider(db).resolve(uuid.uuid4())


@pytest.mark.parametrize(
    "key,value",
    [
        ("weekday_minimum_collection", "six thousand"),
        ("driver_base_pay", "   "),
        ("suspension_threshold", "2.5"),
    ],
)
def test_bad_stored_value_is_configuration_error(db, key, value):
    db.add(Setting(key=key, value=value))
    db.commit()

    with pytest.raises(ConfigurationMissingError) as exc:
        ConfigurationProvider(db).resolve()

    assert exc.value.key == key
