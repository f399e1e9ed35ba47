import pytest

from suite_money.domain.monetary.currency import Currency
from suite_money.domain.monetary.errors import CurrencyNotFoundError
from suite_money.domain.monetary.hierarchy import CurrencyHierarchies
from suite_money.domain.monetary.registry import Registry
from tests.helpers.helper_registry import EUR, ETH, PLN, USD, USDT, create_test_registry

# Constants
CHF = Currency("CHF", 756, 2, "iso/fiat")


def test_empty_registry():
    testee = Registry()
    assert len(testee) == 0
    assert "EUR" not in testee
    assert testee.get("EUR") is None
    assert testee.version is None
    with pytest.raises(CurrencyNotFoundError):
        testee.currency("EUR")


def test_register_appends_and_keeps_original_untouched():
    original = Registry([EUR, USD])
    testee = original.register(CHF, countries=["ch"], traits=["control/centralized"])

    assert [currency.id for currency in testee] == ["EUR", "USD", "CHF"]
    assert testee.countries["CH"] == "CHF"
    assert testee.traits_of("CHF") == {"control/centralized"}
    assert "CHF" not in original
    assert len(original) == 2


def test_register_replaces_in_place():
    registry = Registry([EUR, USD, PLN])
    testee = registry.register(Currency("USD", 840, 4, "iso/fiat"))

    assert [currency.id for currency in testee] == ["EUR", "USD", "PLN"]
    assert testee.position_of("USD") == 1
    assert testee.currency("USD").scale == 4
    assert registry.currency("USD").scale == 2


def test_register_keeps_associations_left_as_none():
    registry = create_test_registry()
    testee = registry.register(EUR.with_scale(3))
    assert testee.countries_of("EUR") == {"DE", "FR"}
    assert testee.localized_of("EUR")["en"]["name"] == "Euro"

    cleared = registry.register(EUR, countries=[], localized={})
    assert cleared.countries_of("EUR") == frozenset()
    assert cleared.localized_of("EUR") == {}


def test_register_moves_country_from_previous_currency():
    registry = Registry([EUR, USD], countries={"DE": "EUR"})
    testee = registry.register(USD, countries=["DE"])
    assert testee.countries["DE"] == "USD"
    assert testee.countries_of("EUR") == frozenset()


def test_unregister_removes_all_associations():
    registry = create_test_registry().set_weight("EUR", 3)
    testee = registry.unregister("EUR")

    assert "EUR" not in testee
    assert "DE" not in testee.countries
    assert "EUR" not in testee.weights
    assert "EUR" not in testee.localized
    assert testee.ids_by_code("EUR") == ()
    assert testee.ids_by_numeric(978) == ()

    with pytest.raises(CurrencyNotFoundError):
        testee.unregister("EUR")


def test_weights():
    registry = create_test_registry()
    assert registry.weight_of("EUR") == 0
    assert not registry.has_explicit_weight("EUR")

    weighted = registry.set_weight("EUR", 0)
    assert weighted.has_explicit_weight("EUR")
    assert weighted.currency("EUR").weight_is_explicit

    weighted = weighted.set_weight(EUR, 10)
    assert weighted.weight_of("EUR") == 10
    assert weighted.currency("EUR").weight == 10

    cleared = weighted.clear_weight("EUR")
    assert cleared.weight_of("EUR") == 0
    assert not cleared.has_explicit_weight("EUR")

    with pytest.raises(CurrencyNotFoundError):
        registry.set_weight("ABC", 1)


def test_explicit_currency_weight_lands_in_weight_table():
    testee = Registry([Currency("EUR", weight=5), Currency("USD", weight=0), Currency("PLN")])
    assert testee.weights == {"EUR": 5, "USD": 0}
    assert testee.weight_of("PLN") == 0


def test_weights_table_overrides_currency_weight():
    testee = Registry([Currency("EUR", weight=5)], weights={"EUR": 7})
    assert testee.weight_of("EUR") == 7
    assert testee.currency("EUR").weight == 7


def test_country_associations():
    registry = create_test_registry()
    testee = registry.add_countries("EUR", ["it", "PL"])
    assert testee.countries_of("EUR") == {"DE", "FR", "IT", "PL"}
    assert testee.countries_of("PLN") == frozenset()

    testee = testee.remove_countries(["it"])
    assert "IT" not in testee.countries


def test_trait_associations():
    registry = create_test_registry()
    testee = registry.add_traits("crypto/ETH", ["token/erc20"])
    assert testee.traits_of("crypto/ETH") == {"control/decentralized", "token/erc20"}

    testee = testee.remove_traits(ETH, ["control/decentralized"])
    assert testee.traits_of("crypto/ETH") == {"token/erc20"}

    testee = testee.set_traits("crypto/ETH", [])
    assert "crypto/ETH" not in testee.traits

    with pytest.raises(TypeError):
        registry.add_traits("crypto/ETH", "token/erc20")


def test_set_localized_replaces_one_locale():
    registry = create_test_registry()
    testee = registry.set_localized("EUR", "de", {"name": "Euro (de)"})
    assert testee.localized_of("EUR")["de"] == {"name": "Euro (de)"}
    assert testee.localized_of("EUR")["en"] == {"name": "Euro"}
    assert "de" not in registry.localized_of("EUR")


def test_rename_moves_associations_and_keeps_position():
    registry = create_test_registry().set_weight("PLN", 4)
    testee = registry.rename("PLN", "iso-4217-legacy/PLN", domain="ISO-4217-LEGACY")

    assert "PLN" not in testee
    renamed = testee.currency("iso-4217-legacy/PLN")
    assert renamed.domain == "ISO-4217-LEGACY"
    assert testee.position_of("iso-4217-legacy/PLN") == registry.position_of("PLN")
    assert testee.countries["PL"] == "iso-4217-legacy/PLN"
    assert testee.weight_of("iso-4217-legacy/PLN") == 4
    assert testee.localized_of("iso-4217-legacy/PLN")["pl"]["name"] == "złoty polski"


def test_rename_onto_existing_id_is_rejected():
    with pytest.raises(ValueError):
        create_test_registry().rename("USD", "EUR")
    with pytest.raises(CurrencyNotFoundError):
        create_test_registry().rename("ABC", "XYZ")


def test_lookups_by_code_and_numeric_follow_registration_order():
    testee = Registry([Currency("custom/EUR", numeric=978), EUR])
    assert testee.ids_by_code("EUR") == ("custom/EUR", "EUR")
    assert testee.ids_by_numeric(978) == ("custom/EUR", "EUR")


def test_constructor_validates_tables():
    with pytest.raises(ValueError):
        Registry([EUR], countries={"US": "USD"})
    with pytest.raises(ValueError):
        Registry({"USD": EUR})
    with pytest.raises(ValueError):
        Registry([EUR], traits={"USD": ["stable"]})
    with pytest.raises(TypeError):
        Registry(["EUR"])
    with pytest.raises(TypeError):
        Registry([EUR], hierarchies={"kind": {}})


def test_hierarchy_and_metadata_updates():
    registry = Registry([EUR], ext={"source": "test"})
    testee = registry.derive("kind", "iso/fiat", "fiat").with_ext({"note": 1}).with_version("v2")

    assert testee.hierarchies.kind.isa("iso/fiat", "fiat")
    assert testee.ext == {"source": "test", "note": 1}
    assert testee.version == "v2"
    assert registry.hierarchies == CurrencyHierarchies()
    assert registry.version is None


def test_dict_export_round_trip():
    registry = create_test_registry().set_weight("crypto/USDT", 0).with_ext({"source": "test"})
    data = registry.to_dict()

    assert list(data["currencies"]) == [currency.id for currency in registry]
    assert data["currencies"]["XAU"]["scale"] == -1
    assert data["weights"] == {"crypto/USDT": 0}
    assert Registry.from_dict(data) == registry


def test_equality_and_iteration():
    assert create_test_registry() == create_test_registry()
    assert create_test_registry() != create_test_registry().register(CHF)
    assert USDT in create_test_registry()
    assert list(create_test_registry())[0] is EUR
    with pytest.raises(TypeError):
        hash(create_test_registry())
