import pytest

from cmssync import conf
from cmssync.catalog import Collection, Product, ProductVariant, Translation
from cmssync.catalog.memory import InMemoryCatalog


@pytest.fixture(autouse=True)
def reset_cmssync():
    """Adapter and catalog singletons must not leak between tests."""
    conf.reset()
    yield
    conf.reset()


def en(name, slug=None):
    return [Translation('en', name, slug)]


@pytest.fixture()
def catalog():
    """Two products with variants, one German-only product and one collection."""
    return InMemoryCatalog(
        products=[
            Product(1, en('Laptop', 'laptop')),
            Product(2, en('Phone', 'phone')),
            Product(3, [Translation('de', 'Tasche', 'tasche')]),
        ],
        variants=[
            ProductVariant(11, 1, en('Laptop 16GB')),
            ProductVariant(12, 1, en('Laptop 32GB')),
            ProductVariant(21, 2, en('Phone 128GB')),
        ],
        collections=[
            Collection(5, en('Electronics', 'electronics')),
        ],
        collection_variants={5: [11, 21]},
    )
