import pytest
from protean.integrations.pytest import DomainFixture

from requisitions.channel import ChannelRegistry, install_channels, reset_channels
from requisitions.channel.fake_email import FakeEmailAdapter
from requisitions.channel.fake_messaging import FakeMessagingAdapter
from requisitions.media import reset_media_catalog


@pytest.fixture(scope="session")
def requisitions_bed():
    from requisitions.domain import requisitions

    bed = DomainFixture(requisitions)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(requisitions_bed):
    with requisitions_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def channels():
    """Fake email and messaging adapters, fresh for every test."""
    registry = install_channels(ChannelRegistry(email=FakeEmailAdapter(), messaging=FakeMessagingAdapter()))
    yield registry
    reset_channels()
    reset_media_catalog()
