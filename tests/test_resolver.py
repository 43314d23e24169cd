"""Tests for the derived status predicates."""

from __future__ import annotations

import pytest

from statusgraph.models import Account, MediaAttachment, PreviewCard, Status, StatusVisibility
from statusgraph.services import resolver
from statusgraph.services.lifecycle import destroy_status


@pytest.mark.parametrize(
    ("visibility", "hidden", "distributable", "reply_countable"),
    [
        (StatusVisibility.PUBLIC, False, True, True),
        (StatusVisibility.UNLISTED, False, True, True),
        (StatusVisibility.PRIVATE, True, False, False),
        (StatusVisibility.LIMITED, True, False, False),
        (StatusVisibility.PRIVATE_GROUP, True, False, True),
    ],
)
def test_visibility_classification(visibility, hidden, distributable, reply_countable) -> None:
    """Each tier maps to a fixed audience classification."""
    status = Status(visibility=visibility)
    assert resolver.is_hidden(status) is hidden
    assert resolver.is_distributable(status) is distributable
    assert resolver.reblog_countable(status) is distributable
    assert resolver.reply_countable(status) is reply_countable


def test_reference_predicates_use_assigned_objects() -> None:
    """Unsaved references count before identifiers are assigned."""
    parent = Status(text="parent")
    assert resolver.is_reply(Status(thread=parent)) is True
    assert resolver.is_reblog(Status(reblog=parent)) is True
    assert resolver.is_quote(Status(quote=parent)) is True
    plain = Status(text="plain")
    assert not (resolver.is_reply(plain) or resolver.is_reblog(plain) or resolver.is_quote(plain))


def test_reply_flag_alone_marks_reply() -> None:
    """Remote replies to unknown parents are still replies."""
    assert resolver.is_reply(Status(reply=True)) is True


def test_locality() -> None:
    """Statuses without a uri, or flagged local, are local."""
    assert resolver.is_local(Status()) is True
    assert resolver.is_local(Status(uri="https://remote.example/1", local=False)) is False
    assert resolver.is_local(Status(uri="/alice/posts/1", local=True)) is True


def test_media_predicates() -> None:
    """Sensitive media posts are not shown inline."""
    status = Status(sensitive=False, media_attachments=[MediaAttachment()])
    assert resolver.has_media(status) is True
    assert resolver.is_non_sensitive_with_media(status) is True
    status.sensitive = True
    assert resolver.is_non_sensitive_with_media(status) is False
    assert resolver.has_media(Status()) is False


def test_proper_and_content_resolve_through_reblogs() -> None:
    """Reblogs display their target."""
    original = Status(text="the real thing")
    share = Status(text="", reblog=original)
    assert resolver.proper(share) is original
    assert resolver.content(share) == "the real thing"
    assert resolver.proper(original) is original


def test_preview_card_is_first_linked_card() -> None:
    """The first preview card represents the status."""
    first, second = PreviewCard(url="https://a.example"), PreviewCard(url="https://b.example")
    assert resolver.preview_card(Status(preview_cards=[first, second])) is first
    assert resolver.preview_card(Status()) is None


def test_verb_object_type_and_title() -> None:
    """Activity descriptors reflect reblogs and replies."""
    alice = Account(username="alice")
    bob = Account(username="bob", domain="remote.example")
    original = Status(account=alice, text="hi")
    share = Status(account=bob, reblog=original)
    reply = Status(account=alice, thread=original)

    assert resolver.verb(original) == "post"
    assert resolver.verb(share) == "share"
    assert resolver.object_type(reply) == "comment"
    assert resolver.object_type(original) == "note"
    assert resolver.title(original) == "New status by alice"
    assert resolver.title(share) == "bob@remote.example shared a status by alice"


def test_destroyed_status_reports_delete(db_session, alice, make_status) -> None:
    """Destroyed statuses describe a deletion."""
    status = make_status(alice)
    destroy_status(db_session, status)
    assert resolver.verb(status) == "delete"
    assert resolver.title(status) == "alice deleted status"


def test_selectable_visibilities_exclude_reserved_tiers() -> None:
    """Clients choose among public, unlisted and private."""
    assert resolver.selectable_visibilities() == [
        StatusVisibility.PUBLIC,
        StatusVisibility.UNLISTED,
        StatusVisibility.PRIVATE,
    ]
