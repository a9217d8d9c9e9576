"""
Rate configuration loading and compilation from the CSV files.
"""
import json
import os
from decimal import Decimal

import pytest

from shipping_rates.data.loader import build_rate_table, load_rate_table, read_countries, read_tiers
from shipping_rates.engine import RateQuotationEngine, RateTableError
from shipping_rates.rates.compile_rates import compile_rates


def test_seed_configuration_builds_valid_table(data_dir):
    table, errors = build_rate_table(data_dir / 'countries.csv', data_dir / 'rates.csv')
    assert errors == []
    assert [c.code for c in table.enabled_countries] == ['BE', 'FR', 'IT']
    assert table.tiers_for('BE')[1].max_grams is None
    assert table.tiers_for('FR')[0].price == Decimal('15')


def test_read_countries_rejects_bad_codes(tmp_path):
    path = tmp_path / 'countries.csv'
    path.write_text("code,name,enabled\nBE,Belgium,true\nBEL,Belgium,true\n,Nowhere,false\n", encoding='utf-8')
    countries, errors = read_countries(path)
    assert [c.code for c in countries] == ['BE']
    assert len(errors) == 2
    assert "line 3" in errors[0]


def test_read_tiers_collects_row_errors(tmp_path):
    path = tmp_path / 'rates.csv'
    path.write_text(
        "country_code,min_grams,max_grams,price\n"
        "BE,0,3000,10\n"
        "BE,abc,,20\n"
        "BE,3000,1000,20\n"
        "BE,3000,,\n"
        "FR,0,,-5\n",
        encoding='utf-8',
    )
    tiers, errors = read_tiers(path)
    assert len(tiers['BE']) == 1
    assert len(errors) == 4
    assert any("line 3" in e and "not a number" in e for e in errors)
    assert any("max_grams must be greater" in e for e in errors)
    assert any("price is required" in e for e in errors)
    assert any("must not be negative" in e for e in errors)


def test_missing_columns_raise(tmp_path):
    path = tmp_path / 'rates.csv'
    path.write_text("country,price\nBE,10\n", encoding='utf-8')
    with pytest.raises(RateTableError):
        read_tiers(path)


def test_compile_writes_json(data_dir):
    output = data_dir / 'compiled_rates.json'
    success, table, errors = compile_rates(data_dir / 'countries.csv', data_dir / 'rates.csv', output)

    assert success
    assert errors == []
    data = json.loads(output.read_text(encoding='utf-8'))
    assert data['enabled_countries'] == 3
    assert data['currency'] == 'EUR'
    assert data['tiers']['BE'][1] == {'min_grams': '3000', 'max_grams': None, 'price': '20'}


def test_compile_fails_on_gap_and_writes_nothing(data_dir):
    rates = data_dir / 'rates.csv'
    rates.write_text(rates.read_text(encoding='utf-8').replace("BE,3000,,20", "BE,3500,,20"), encoding='utf-8')
    output = data_dir / 'compiled_rates.json'

    success, _, errors = compile_rates(data_dir / 'countries.csv', rates, output, verbose=False)

    assert not success
    assert any("gap between 3000 g and 3500 g" in e for e in errors)
    assert not output.exists()


def test_compile_missing_file(tmp_path):
    success, table, errors = compile_rates(tmp_path / 'countries.csv', tmp_path / 'rates.csv', tmp_path / 'out.json')
    assert not success
    assert table is None
    assert "not found" in errors[0]


def test_engine_prefers_compiled_json(settings):
    compile_rates(settings.countries_csv, settings.rates_csv, settings.compiled_rates)
    data = json.loads(settings.compiled_rates.read_text(encoding='utf-8'))
    data['tiers']['IT'] = [{'min_grams': '0', 'max_grams': None, 'price': '50'}]
    settings.compiled_rates.write_text(json.dumps(data), encoding='utf-8')

    engine = RateQuotationEngine(settings=settings)
    assert engine.table.source == 'compiled_rates.json'
    assert engine.quote(400, 'Italy').price == Decimal('50')


def test_engine_builds_from_csv_without_compiled_json(settings):
    engine = RateQuotationEngine(settings=settings)
    assert engine.quote(1000, 'Belgium').price == Decimal('10')
    assert engine.quote(1000, 'Germany').reason == 'unsupported_destination'


def test_load_rate_table_raises_on_invalid_configuration(settings):
    settings.rates_csv.write_text("country_code,min_grams,max_grams,price\nBE,0,,10\n", encoding='utf-8')
    with pytest.raises(RateTableError) as exc:
        load_rate_table(settings)
    assert any("FR" in e for e in exc.value.errors)


def test_reload_data_picks_up_new_csv(settings):
    engine = RateQuotationEngine(settings=settings)
    settings.rates_csv.write_text(
        settings.rates_csv.read_text(encoding='utf-8').replace("IT,0,,45", "IT,0,,47.5"),
        encoding='utf-8',
    )
    engine.reload_data()
    assert str(engine.quote(400, 'IT').price) == '47.50'


def test_stale_compiled_json_is_rebuilt_from_csv(settings):
    compile_rates(settings.countries_csv, settings.rates_csv, settings.compiled_rates)
    settings.countries_csv.write_text(
        settings.countries_csv.read_text(encoding='utf-8').replace("IT,Italy,true", "IT,Italy,false"),
        encoding='utf-8',
    )
    compiled_at = settings.compiled_rates.stat().st_mtime_ns
    os.utime(settings.countries_csv, ns=(compiled_at + 10 ** 9, compiled_at + 10 ** 9))

    table = load_rate_table(settings)
    assert table.source == 'countries.csv+rates.csv'
    assert [c.code for c in table.enabled_countries] == ['BE', 'FR']


def test_compiled_currency_mismatch_is_logged(settings, log_messages):
    compile_rates(settings.countries_csv, settings.rates_csv, settings.compiled_rates, currency='USD')
    table = load_rate_table(settings)
    assert table.currency == 'USD'
    assert any("not the configured EUR" in m for m in log_messages)
