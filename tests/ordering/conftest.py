import pytest
from ordering.catalogue import reset_catalogue, set_catalogue
from ordering.catalogue.fake_adapter import FakeCatalogue
from ordering.config import reset_policy
from ordering.reconciliation.channel import reset_channel
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


@pytest.fixture()
def catalogue():
    """The fake catalogue every test runs against."""
    fake = FakeCatalogue()
    set_catalogue(fake)
    return fake


@pytest.fixture(autouse=True)
def _ctx(ordering_bed, catalogue):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        for _, broker in current_domain.brokers.items():
            broker._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_catalogue()
    reset_channel()
    reset_policy()
