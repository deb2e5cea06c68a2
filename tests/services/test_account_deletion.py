import pytest
from unittest.mock import AsyncMock, MagicMock

from fedi_delete.services.account_deletion import AccountDeletionService
from fedi_delete.services.activitypub import DeleteActivityBuilder
from fedi_delete.services.audience import AudienceCalculator
from fedi_delete.services.delivery import LedgerDeliveryDispatcher


@pytest.fixture
def mock_dispatcher():
    dispatcher = MagicMock(spec=LedgerDeliveryDispatcher)
    dispatcher.enqueue_delivery = AsyncMock(return_value=None)
    return dispatcher


@pytest.fixture
def service(repository, mock_dispatcher):
    return AccountDeletionService(
        repository=repository,
        audience=AudienceCalculator(repository),
        dispatcher=mock_dispatcher,
        builder=DeleteActivityBuilder(local_domain="local.test"),
    )


@pytest.mark.asyncio
async def test_federated_account_deletion_is_not_echoed(
    service, repository, sender, remote_follower, mock_dispatcher
):
    repository.follow(remote_follower.id, sender.id)
    status = repository.create_status(account_id=sender.id)

    deleted = await service.delete_account(
        sender, reserve_username=False, skip_federation_echo=True
    )

    assert deleted is True
    assert repository.find_account(sender.id) is None
    assert repository.find_status_including_deleted(status.id) is None
    mock_dispatcher.enqueue_delivery.assert_not_called()


@pytest.mark.asyncio
async def test_local_account_deletion_is_announced(
    service, repository, reblogger, remote_follower, mock_dispatcher
):
    repository.follow(remote_follower.id, reblogger.id)

    await service.delete_account(
        reblogger, reserve_username=True, skip_federation_echo=False
    )

    assert repository.find_account(reblogger.id) is not None
    document, inbox_url = mock_dispatcher.enqueue_delivery.call_args.args
    assert inbox_url == "http://example.com/inbox"
    assert document["object"] == reblogger.uri


@pytest.mark.asyncio
async def test_deleting_missing_account_returns_false(service, repository, sender):
    await service.delete_account(sender, reserve_username=False, skip_federation_echo=True)

    assert (
        await service.delete_account(
            sender, reserve_username=False, skip_federation_echo=True
        )
        is False
    )
