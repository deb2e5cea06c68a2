from fedi_delete.db.models import QUOTE_STATE_ACCEPTED, QUOTE_STATE_REVOKED


def test_discarded_status_is_hidden_from_normal_lookup(repository, sender):
    status = repository.create_status(account_id=sender.id, uri="https://example.com/s/1", text="kept")

    discarded = repository.discard_status(status.id)

    assert discarded is not None
    assert repository.find_status(status.id) is None
    assert repository.find_status_by_uri(status.uri) is None
    kept = repository.find_status_including_deleted(status.id)
    assert kept.text == "kept"
    assert repository.discard_status(status.id) is None


def test_remove_status_cascades_to_reblogs_and_quotes(repository, sender, reblogger):
    original = repository.create_status(account_id=sender.id, uri="https://example.com/s/2")
    reblog = repository.create_status(account_id=reblogger.id, reblog_of_id=original.id)
    quoting = repository.create_status(account_id=reblogger.id, text="look at this")
    quote = repository.create_quote(
        status_id=quoting.id,
        quoted_status_id=original.id,
        quoted_account_id=sender.id,
        approval_uri="https://example.com/approvals/2",
    )

    removal = repository.remove_status(original.id)

    assert removal.status.id == original.id
    assert [r.id for r in removal.reblogs] == [reblog.id]
    assert repository.find_status_including_deleted(original.id) is None
    assert repository.find_status_including_deleted(reblog.id) is None
    assert repository.find_status(quoting.id) is not None
    assert repository.find_quote(quote.id).quoted_status_id is None
    assert repository.remove_status(original.id) is None


def test_discarded_reblogs_are_removed_but_not_reported(repository, sender, reblogger):
    original = repository.create_status(account_id=sender.id, uri="https://example.com/s/3")
    reblog = repository.create_status(account_id=reblogger.id, reblog_of_id=original.id)
    repository.discard_status(reblog.id)

    removal = repository.remove_status(original.id)

    assert removal.reblogs == ()
    assert repository.find_status_including_deleted(reblog.id) is None


def test_active_report_lookup(repository, sender):
    status = repository.create_status(account_id=sender.id)
    other = repository.create_status(account_id=sender.id)
    report_id = repository.create_report(
        account_id=sender.id, target_account_id=sender.id, status_ids=[status.id], forwarded=True
    )

    assert repository.has_active_report(status.id)
    assert not repository.has_active_report(other.id)

    repository.resolve_report(report_id)

    assert not repository.has_active_report(status.id)


def test_remote_follower_inboxes_are_distinct_and_remote_only(repository, reblogger):
    first = repository.create_account(
        username="a", domain="example.com", uri="https://example.com/users/a",
        inbox_url="https://example.com/inbox",
    )
    second = repository.create_account(
        username="b", domain="example.com", uri="https://example.com/users/b",
        inbox_url="https://example.com/inbox",
    )
    third = repository.create_account(
        username="c", domain="other.example", uri="https://other.example/users/c",
        inbox_url="https://other.example/users/c/inbox",
    )
    local = repository.create_account(username="d", uri="https://local.test/users/d")
    for follower in (first, second, third, local):
        repository.follow(follower.id, reblogger.id)
    repository.follow(first.id, reblogger.id)

    assert repository.remote_follower_inboxes(reblogger.id) == {
        "https://example.com/inbox",
        "https://other.example/users/c/inbox",
    }


def test_revoke_quote_is_idempotent(repository, sender, reblogger):
    quoting = repository.create_status(account_id=reblogger.id)
    quote = repository.create_quote(
        status_id=quoting.id,
        quoted_status_id=None,
        quoted_account_id=sender.id,
        approval_uri="https://example.com/approvals/3",
        state=QUOTE_STATE_ACCEPTED,
    )

    assert repository.revoke_quote(quote.id) is True
    assert repository.revoke_quote(quote.id) is False
    assert repository.find_quote_by_approval_uri(quote.approval_uri).state == QUOTE_STATE_REVOKED


def test_enqueue_delivery_deduplicates(repository):
    kwargs = dict(
        inbox_url="https://example.com/inbox",
        activity_id="https://local.test/s/1#delete",
        object_uri="https://local.test/s/1",
        payload="{}",
    )

    assert repository.enqueue_delivery(**kwargs) is True
    assert repository.enqueue_delivery(**kwargs) is False
    assert repository.count_deliveries(object_uri="https://local.test/s/1") == 1
    assert [row.inbox_url for row in repository.get_queued_deliveries(10)] == [
        "https://example.com/inbox"
    ]


def test_tombstones(repository, sender):
    uri = "https://example.com/statuses/gone"

    assert repository.remember_tombstone(uri, sender.id) is True
    assert repository.remember_tombstone(uri, sender.id) is False
    assert repository.is_tombstoned(uri)
    assert not repository.is_tombstoned("https://example.com/statuses/other")


def test_purge_account(repository, sender, reblogger, remote_follower):
    status = repository.create_status(account_id=sender.id)
    reblog = repository.create_status(account_id=reblogger.id, reblog_of_id=status.id)
    repository.follow(remote_follower.id, sender.id)

    assert repository.purge_account(sender.id, reserve_username=False) is True

    assert repository.find_account(sender.id) is None
    assert repository.find_status_including_deleted(status.id) is None
    assert repository.find_status_including_deleted(reblog.id) is None
    assert repository.remote_follower_inboxes(sender.id) == set()
    assert repository.purge_account(sender.id, reserve_username=False) is False


def test_purge_account_reserving_username(repository, sender):
    repository.create_status(account_id=sender.id)

    repository.purge_account(sender.id, reserve_username=True)

    assert repository.find_account(sender.id) is not None


def test_remote_follower_inboxes_prefer_shared_inbox(repository, reblogger):
    for name in ("e", "f"):
        follower = repository.create_account(
            username=name,
            domain="shared.example",
            uri=f"https://shared.example/users/{name}",
            inbox_url=f"https://shared.example/users/{name}/inbox",
            shared_inbox_url="https://shared.example/inbox",
        )
        repository.follow(follower.id, reblogger.id)

    assert repository.remote_follower_inboxes(reblogger.id) == {
        "https://shared.example/inbox"
    }
