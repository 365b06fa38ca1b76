import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context.
    The activated domain can then be referred to elsewhere as `current_domain`.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from mailroom.domain import mailroom

    mailroom.init()
    mailroom.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from mailroom.domain import mailroom
    from mailroom.utils.db import drop_db, setup_db

    setup_db(mailroom)

    yield

    drop_db(mailroom)


@pytest.fixture()
def provider():
    """The fake email provider every dispatch in the test goes through."""
    from mailroom.provider import get_provider

    return get_provider()


@pytest.fixture()
def directory():
    """The fake user directory handlers resolve users against."""
    from mailroom.users import get_user_directory

    return get_user_directory()


@pytest.fixture(autouse=True)
def run_around_tests():
    """Swap in fakes before every test and clean up infrastructure afterwards."""
    from mailroom.delivery.dispatcher import NotificationDispatcher, reset_dispatcher, set_dispatcher
    from mailroom.provider import reset_provider, set_provider
    from mailroom.provider.fake import FakeProvider
    from mailroom.users import reset_user_directory, set_user_directory
    from mailroom.users.fake_directory import FakeUserDirectory

    fake_provider = FakeProvider()
    set_provider(fake_provider)
    set_user_directory(FakeUserDirectory())
    set_dispatcher(NotificationDispatcher(provider=fake_provider, inline=True))

    yield

    reset_dispatcher()
    reset_provider()
    reset_user_directory()

    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()
