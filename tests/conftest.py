from pathlib import Path

import pytest

from fedi_delete.core.settings import DeleteSettings
from fedi_delete.db import DatabaseSessionManager
from fedi_delete.db.repository import DeleteRepository


@pytest.fixture
def settings(tmp_path: Path) -> DeleteSettings:
    return DeleteSettings(
        local_domain="local.test",
        database_url=f"sqlite+pysqlite:///{tmp_path / 'delete.db'}",
        delivery_worker_enabled=False,
        prometheus_port=0,
    )


@pytest.fixture
def db_manager(settings):
    manager = DatabaseSessionManager(settings.database_url)
    manager.create_all()
    yield manager
    manager.dispose()


@pytest.fixture
def repository(db_manager) -> DeleteRepository:
    return DeleteRepository(db_manager)


@pytest.fixture
def sender(repository):
    return repository.create_account(
        username="sender",
        domain="example.com",
        uri="https://example.com/users/sender",
        inbox_url="https://example.com/users/sender/inbox",
    )


@pytest.fixture
def reblogger(repository):
    return repository.create_account(
        username="reblogger",
        uri="https://local.test/users/reblogger",
    )


@pytest.fixture
def remote_follower(repository):
    return repository.create_account(
        username="follower",
        domain="example.com",
        uri="http://example.com/users/follower",
        inbox_url="http://example.com/inbox",
    )
