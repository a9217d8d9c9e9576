from decimal import Decimal

import pytest

from conftest import tier
from shipping_rates.engine import Country, Quote, RateTable, UnsupportedDestination, InvalidWeight
from shipping_rates.engine.models import check_tier_coverage, quantize_money
from shipping_rates.engine.tier_matcher import match_tier


def test_seed_table_is_valid(table):
    assert table.validate() == []


def test_tiers_sorted_by_min_weight():
    table = RateTable(
        countries=(Country('FR', 'France'),),
        tiers={'fr': (tier(400, None, 25), tier(0, 400, 15))},
    )
    assert [t.min_grams for t in table.tiers_for('FR')] == [0, 400]


def test_table_tiers_are_read_only(table):
    with pytest.raises(TypeError):
        table.tiers['BE'] = ()


@pytest.mark.parametrize("tiers, fragment", [
    ([], "no weight tiers"),
    ([tier(10, None, 5)], "instead of 0"),
    ([tier(0, 100, 5), tier(200, None, 6)], "gap between"),
    ([tier(0, 300, 5), tier(200, None, 6)], "overlap"),
    ([tier(0, 100, 5)], "is bounded"),
    ([tier(0, None, 5), tier(100, None, 6)], "unbounded tier"),
    ([tier(0, None, -1)], "negative price"),
])
def test_tier_coverage_errors(tiers, fragment):
    errors = check_tier_coverage('BE', tiers)
    assert any(fragment in e for e in errors), errors


def test_disabled_country_tiers_not_checked_for_coverage():
    table = RateTable(
        countries=(Country('BE', 'Belgium'), Country('DE', 'Germany', enabled=False)),
        tiers={'BE': (tier(0, None, 10),), 'DE': (tier(0, 100, 5),)},
    )
    assert table.validate() == []


def test_table_without_enabled_countries_is_invalid():
    table = RateTable(countries=(Country('DE', 'Germany', enabled=False),), tiers={})
    assert "No enabled countries" in table.validate()


def test_tiers_for_unknown_country_is_invalid(table):
    broken = RateTable(countries=table.countries, tiers=dict(table.tiers, US=(tier(0, None, 1),)))
    assert any("unknown country US" in e for e in broken.validate())


def test_resolve_country(table):
    assert table.resolve_country('Italy').code == 'IT'
    assert table.resolve_country(' it ').code == 'IT'
    assert table.resolve_country('Germany').enabled is False
    assert table.resolve_country('Spain') is None


def test_dict_round_trip_keeps_unbounded_tiers(table):
    restored = RateTable.from_dict(table.to_dict())
    assert restored.tiers_for('BE')[-1].max_grams is None
    assert restored.enabled_countries == table.enabled_countries
    assert restored.currency == 'EUR'


def test_match_tier_is_first_match_in_ascending_order():
    tiers = [tier(400, None, 25), tier(0, 400, 15)]
    assert match_tier(tiers, Decimal(399)).price == 15
    assert match_tier(tiers, Decimal(400)).price == 25
    assert match_tier([tier(0, 10, 1)], Decimal(10)) is None


def test_lowercase_codes_are_normalized():
    table = RateTable(countries=(Country('be', 'Belgium'),), tiers={'be': (tier(0, None, 10),)})
    assert table.countries[0].code == 'BE'
    assert table.validate() == []
    assert table.resolve_country('Belgium').code == 'BE'


@pytest.mark.parametrize("amount, currency, expected", [
    ("10", "EUR", "10.00"),
    ("10.005", "EUR", "10.01"),
    ("1234.5", "JPY", "1235"),
    ("1.2345", "KWD", "1.235"),
])
def test_quantize_money(amount, currency, expected):
    assert str(quantize_money(Decimal(amount), currency)) == expected


def test_quote_constructors_and_raise_for_error():
    ok = Quote.success(Decimal("10.00"), "EUR", country_code="BE", weight_grams=Decimal(1000))
    assert ok.raise_for_error() is ok
    assert ok.to_dict()["price"] == "10.00"

    failed = Quote.failure(UnsupportedDestination("DE not enabled"), country_code=None, weight_grams=None)
    assert failed.reason == "unsupported_destination"
    with pytest.raises(UnsupportedDestination):
        failed.raise_for_error()

    bad_weight = Quote.failure(InvalidWeight("negative"), country_code="BE", weight_grams=None)
    with pytest.raises(InvalidWeight):
        bad_weight.raise_for_error()
