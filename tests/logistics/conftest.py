import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def logistics_bed():
    from logistics.domain import logistics

    bed = DomainFixture(logistics)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(logistics_bed):
    from logistics.carrier import reset_carrier

    reset_carrier()
    with logistics_bed.domain_context() as domain:
        yield
        # Caches are not reset by the fixture
        for cache in domain.caches.values():
            cache.flush_all()
    reset_carrier()


@pytest.fixture()
def carrier():
    """The fake carrier the sync handler talks to in this test."""
    from logistics.carrier import get_carrier

    return get_carrier()
