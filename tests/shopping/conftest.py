import pytest
from protean.integrations.pytest import DomainFixture
from shopping.catalog import reset_catalog, set_catalog
from shopping.catalog.fake_adapter import InMemoryCatalog
from shopping.shipping import reset_shipping_provider, set_shipping_provider
from shopping.shipping.rule_based import RuleBasedShipping


@pytest.fixture(scope="session")
def shopping_bed():
    from shopping.domain import shopping
    from shopping.utils.db import drop_db, setup_db

    bed = DomainFixture(shopping)
    bed.setup()
    setup_db(shopping)
    yield bed
    drop_db(shopping)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(shopping_bed):
    with shopping_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()

    reset_catalog()
    reset_shipping_provider()


@pytest.fixture()
def catalog():
    fake = InMemoryCatalog()
    set_catalog(fake)
    return fake


@pytest.fixture()
def shipping():
    provider = RuleBasedShipping()
    set_shipping_provider(provider)
    return provider


@pytest.fixture()
def stocked_catalog(catalog):
    """Two stores, a couple of products each."""
    catalog.add_product("prod-mug", "Ceramic Mug", 12.0, 10, "store-a", "Alpha Goods", image_url="/images/mug.png")
    catalog.add_product("prod-tea", "Green Tea", 9.0, 3, "store-a", "Alpha Goods")
    catalog.add_product("prod-lamp", "Desk Lamp", 40.0, 5, "store-b", "Beta Home")
    return catalog
