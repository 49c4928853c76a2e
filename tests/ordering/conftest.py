import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    bed = DomainFixture(ordering)
    bed.setup()
    setup_db(ordering)
    yield bed
    drop_db(ordering)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def register_product():
    """Register a catalog product through its command and return its id."""
    from protean import current_domain

    from ordering.catalog.management import RegisterProduct

    counter = {"n": 0}

    def _register(name="Widget", price=10.0, stock=10, sale_price=None, status=None, sku=None):
        counter["n"] += 1
        command = RegisterProduct(
            name=name,
            sku=sku or f"SKU-{counter['n']:04d}",
            price=price,
            sale_price=sale_price,
            stock=stock,
            status=status,
        )
        return current_domain.process(command, asynchronous=False)

    return _register


@pytest.fixture()
def stock_of():
    """Read the current ledger value of a product."""
    from ordering.catalog.lookup import CatalogLookup

    def _stock(product_id):
        return CatalogLookup().find(product_id).stock

    return _stock


@pytest.fixture()
def fail_next_commit():
    """Make the next unit-of-work commit raise ``exc`` on the memory or SQL provider.

    Yields a counter of commit calls so tests can see whether the unit was
    run again.
    """
    from contextlib import contextmanager
    from unittest.mock import patch

    from protean.adapters.repository.memory import MemorySession
    from sqlalchemy.orm import Session

    @contextmanager
    def _fail(exc):
        calls = {"n": 0}

        def _patched(original):
            def _commit(self, *args, **kwargs):
                calls["n"] += 1
                if calls["n"] == 1:
                    raise exc
                return original(self, *args, **kwargs)

            return _commit

        with (
            patch.object(MemorySession, "commit", _patched(MemorySession.commit)),
            patch.object(Session, "commit", _patched(Session.commit)),
        ):
            yield calls

    return _fail
