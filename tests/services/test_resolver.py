from fedi_delete.models import (
    NOT_FOUND,
    AccountTarget,
    QuoteAuthorizationTarget,
    StatusTarget,
)
from fedi_delete.services.resolver import ObjectResolver


def test_actor_uri_resolves_to_account(repository, sender):
    resolver = ObjectResolver(repository)

    assert resolver.resolve(sender.uri, sender) == AccountTarget(sender.id)


def test_approval_uri_wins_over_status_uri(repository, sender, reblogger):
    uri = "https://example.com/shared/1"
    status = repository.create_status(account_id=sender.id, uri=uri)
    quoting = repository.create_status(account_id=reblogger.id)
    quote = repository.create_quote(
        status_id=quoting.id,
        quoted_status_id=status.id,
        quoted_account_id=sender.id,
        approval_uri=uri,
    )
    resolver = ObjectResolver(repository)

    assert resolver.resolve(uri, sender) == QuoteAuthorizationTarget(quote.id)


def test_status_uri_resolves_to_status(repository, sender):
    status = repository.create_status(account_id=sender.id, uri="https://example.com/s/9")
    resolver = ObjectResolver(repository)

    assert resolver.resolve(status.uri, sender) == StatusTarget(status.id)


def test_discarded_status_does_not_resolve(repository, sender):
    status = repository.create_status(account_id=sender.id, uri="https://example.com/s/10")
    repository.discard_status(status.id)
    resolver = ObjectResolver(repository)

    assert resolver.resolve(status.uri, sender) is NOT_FOUND


def test_unknown_object_is_not_found(repository, sender):
    resolver = ObjectResolver(repository)

    assert resolver.resolve("https://example.com/s/unknown", sender) is NOT_FOUND
