import json
import logging

import pytest

from suite_money.config import Settings
from suite_money.domain.monetary.currency import AUTO_SCALED
from suite_money.domain.monetary.merge import DEFAULT_LEGACY_WEIGHT
from suite_money.domain.monetary.registry import Registry
from suite_money.domain.monetary.resolution import is_decentralized, is_iso_legacy, is_stable, name_of, of_country, resolve
from suite_money.domain.monetary.seed import (
    currency_from_row,
    dist_registry,
    load_config,
    load_registry,
    registry_from_settings,
)


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_packaged_data_contents():
    testee = dist_registry()

    assert testee.version == "2026101900"
    assert resolve("EUR", testee).numeric == 978
    assert resolve("JPY", testee).scale == 0
    assert resolve("XAU", testee).scale is AUTO_SCALED
    assert of_country("PL", testee).id == "PLN"
    assert name_of("PLN", "pl", testee) == "złoty polski"
    assert is_stable("crypto/USDT", testee)
    assert is_decentralized("crypto/BTC", testee)
    assert is_iso_legacy("iso-4217-legacy/DEM", testee)
    assert dist_registry() is testee


def test_packaged_legacy_currencies_rank_below_canonical():
    testee = dist_registry()
    assert testee.weight_of("iso-4217-legacy/DEM") == DEFAULT_LEGACY_WEIGHT
    assert resolve("DEM", testee).id == "iso-4217-legacy/DEM"
    assert all(testee.weight_of(currency.id) == 0 for currency in testee if currency.namespace is None)


def test_load_registry_merges_user_file_over_packaged_data(tmp_path):
    path = write_json(
        tmp_path / "registry.json",
        {
            "version": "user-1",
            "currencies": {"crypto/ABC": {"scale": 8, "kind": "crypto/coin"}, "EUR": {"numeric": 978, "scale": 4, "kind": "iso/fiat"}},
            "countries": {"XA": "crypto/ABC"},
        },
    )
    testee = load_registry(path)

    assert testee.version == "user-1"
    assert testee.currency("EUR").scale == 4
    assert "DE" in testee.countries_of("EUR")
    assert of_country("XA", testee).id == "crypto/ABC"
    assert "USD" in testee


def test_load_registry_without_packaged_data(tmp_path):
    path = write_json(tmp_path / "registry.json", {"currencies": {"crypto/ABC": {"scale": 8}}})
    testee = load_registry(path, keep_dist=False)
    assert [currency.id for currency in testee] == ["crypto/ABC"]


def test_load_registry_without_path_gives_packaged_data():
    assert load_registry() is dist_registry()


def test_load_config_rejects_non_object(tmp_path):
    with pytest.raises(ValueError):
        load_config(write_json(tmp_path / "list.json", ["EUR"]))
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")


def test_registry_from_settings(tmp_path, caplog):
    assert registry_from_settings(Settings(initialize_registry=False)) == Registry()
    assert registry_from_settings(Settings()) is dist_registry()

    with caplog.at_level(logging.WARNING):
        testee = registry_from_settings(Settings(registry_path=tmp_path / "missing.json"))
    assert testee is dist_registry()
    assert "missing.json" in caplog.text

    path = write_json(tmp_path / "user.json", {"currencies": {"crypto/ABC": {"scale": 8}}})
    assert len(registry_from_settings(Settings(registry_path=path, keep_dist=False))) == 1


def test_currency_from_row():
    legacy = currency_from_row("DEM", "276", "2", "Old, now EUR")
    assert legacy.id == "iso-4217-legacy/DEM"
    assert legacy.domain == "ISO-4217-LEGACY"
    assert legacy.numeric == 276

    funds = currency_from_row("CLF", 990, 4, "FundsCode")
    assert funds.kind == "iso/funds"
    assert funds.domain == "ISO-4217"

    metal = currency_from_row("XAU", "959", "")
    assert metal.is_auto_scaled
    assert metal.kind == "iso/fiat"

    assert currency_from_row("XXX", "", "-1").numeric is None
    assert currency_from_row("XXX", "", "-1").is_auto_scaled
