"""Tests for visibility rules, timeline builders and status scopes."""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select

from statusgraph.db.time import utcnow
from statusgraph.models import (
    AccountDomainBlock,
    Block,
    Follow,
    Group,
    Mention,
    Mute,
    Status,
    StatusVisibility,
    Tag,
)
from statusgraph.repositories import status_scopes as scopes
from statusgraph.repositories.status_scopes import StatusOrder
from statusgraph.services.interactions import favourite
from statusgraph.services.timelines import (
    apply_timeline_filters,
    group_collection_timeline,
    group_timeline,
    home_timeline,
    outbox_timeline,
    permitted_for,
    pro_timeline,
    tag_timeline,
)


def _ids(session, stmt) -> list[int]:
    return [status.id for status in session.scalars(stmt)]


def _one_of_each_visibility(make_status, account) -> dict[StatusVisibility, Status]:
    return {
        visibility: make_status(account, visibility=visibility)
        for visibility in StatusVisibility
    }


# --- permitted_for ----------------------------------------------------------------


def test_anonymous_viewer_sees_public_and_unlisted(db_session, alice, make_status) -> None:
    """Without a viewer only distributable statuses are visible."""
    made = _one_of_each_visibility(make_status, alice)
    visible = set(_ids(db_session, permitted_for(alice, None)))
    assert visible == {
        made[StatusVisibility.PUBLIC].id,
        made[StatusVisibility.UNLISTED].id,
    }


def test_author_sees_every_tier(db_session, alice, make_status) -> None:
    """Authors see their own statuses including limited ones."""
    made = _one_of_each_visibility(make_status, alice)
    visible = set(_ids(db_session, permitted_for(alice, alice)))
    assert visible == {status.id for status in made.values()}


def test_stranger_sees_only_distributable_unless_mentioned(
    db_session, alice, bob, make_status
) -> None:
    """Restricted tiers are hidden from strangers except where they are mentioned."""
    made = _one_of_each_visibility(make_status, alice)
    mentioned = make_status(
        alice,
        visibility=StatusVisibility.LIMITED,
        mentions=[Mention(account_id=bob.id)],
    )

    visible = set(_ids(db_session, permitted_for(alice, bob)))
    assert visible == {
        made[StatusVisibility.PUBLIC].id,
        made[StatusVisibility.UNLISTED].id,
        mentioned.id,
    }


def test_follower_also_sees_private(db_session, alice, bob, make_status) -> None:
    """Following the author unlocks private statuses."""
    made = _one_of_each_visibility(make_status, alice)
    db_session.add(Follow(account_id=bob.id, target_account_id=alice.id))
    db_session.flush()

    visible = set(_ids(db_session, permitted_for(alice, bob)))
    assert made[StatusVisibility.PRIVATE].id in visible
    assert made[StatusVisibility.LIMITED].id not in visible
    assert made[StatusVisibility.PRIVATE_GROUP].id not in visible


def test_blocked_viewer_sees_nothing(db_session, alice, bob, make_status) -> None:
    """A block hides everything, including statuses mentioning the viewer."""
    make_status(alice)
    make_status(alice, mentions=[Mention(account_id=bob.id)])
    db_session.add(Block(account_id=alice.id, target_account_id=bob.id))
    db_session.flush()

    assert _ids(db_session, permitted_for(alice, bob)) == []


def test_reblogs_of_excluded_accounts_are_hidden(
    db_session, alice, bob, carol, make_status
) -> None:
    """Shares of statuses by accounts the viewer muted are dropped."""
    muted_original = make_status(carol)
    share = make_status(alice, text="", reblog=muted_original)
    own = make_status(alice)
    db_session.add(Mute(account_id=bob.id, target_account_id=carol.id))
    db_session.flush()

    visible = _ids(db_session, permitted_for(alice, bob))
    assert own.id in visible
    assert share.id not in visible


def test_permitted_for_orders_newest_first(db_session, alice, make_status) -> None:
    """The default order is most recent first; oldest first on request."""
    first = make_status(alice)
    second = make_status(alice)

    assert _ids(db_session, permitted_for(alice, None)) == [second.id, first.id]
    oldest = permitted_for(alice, None, order=StatusOrder.OLDEST)
    assert _ids(db_session, oldest) == [first.id, second.id]


# --- timelines --------------------------------------------------------------------


def test_home_timeline_excludes_replies_and_old_statuses(
    db_session, alice, bob, carol, make_status
) -> None:
    """Home shows recent top-level statuses by the viewer and followed accounts."""
    db_session.add(Follow(account_id=alice.id, target_account_id=bob.id))
    db_session.flush()
    now = utcnow()

    own = make_status(alice)
    followed = make_status(bob)
    make_status(bob, thread=own)
    make_status(alice, thread=followed)
    make_status(bob, created_at=now - timedelta(days=4))
    make_status(carol)

    assert _ids(db_session, home_timeline(alice, now=now)) == [followed.id, own.id]


def test_group_timeline_is_time_bounded(db_session, alice, bob, make_status) -> None:
    """Group timelines keep ten days of top-level statuses."""
    group = Group(title="Cycling")
    db_session.add(group)
    db_session.flush()
    now = utcnow()

    recent = make_status(alice, group_id=group.id)
    make_status(alice, group_id=group.id, created_at=now - timedelta(days=11))
    make_status(bob, thread=recent)
    make_status(bob)

    assert _ids(db_session, group_timeline(group.id, now=now)) == [recent.id]


def test_group_collection_timeline_has_no_time_bound(db_session, alice, make_status) -> None:
    """The collection variant spans several groups without an age limit."""
    first, second, other = Group(title="A"), Group(title="B"), Group(title="C")
    db_session.add_all([first, second, other])
    db_session.flush()

    old = make_status(alice, group_id=first.id, created_at=utcnow() - timedelta(days=40))
    new = make_status(alice, group_id=second.id)
    make_status(alice, group_id=other.id)

    stmt = group_collection_timeline([first.id, second.id])
    assert _ids(db_session, stmt) == [new.id, old.id]


def test_pro_timeline_lists_popular_local_public_statuses(
    db_session, make_account, make_status
) -> None:
    """Only fresh statuses by verified or unlocked pro accounts qualify."""
    verified = make_account(is_verified=True)
    pro = make_account(is_pro=True)
    locked_pro = make_account(is_pro=True, locked=True)
    regular = make_account()
    silenced = make_account(is_verified=True, silenced_at=utcnow())

    by_verified = make_status(verified)
    by_pro = make_status(pro)
    make_status(locked_pro, visibility=StatusVisibility.PUBLIC)
    make_status(regular)
    make_status(silenced)
    make_status(verified, visibility=StatusVisibility.UNLISTED)
    make_status(verified, thread=by_pro)

    assert set(_ids(db_session, pro_timeline())) == {by_verified.id, by_pro.id}


def test_pro_timeline_drops_stale_statuses(db_session, make_account, make_status) -> None:
    """Statuses not updated within the last hour fall off."""
    verified = make_account(is_verified=True)
    make_status(verified)
    later = utcnow() + timedelta(hours=2)
    assert _ids(db_session, pro_timeline(now=later)) == []


def test_tag_timeline_filters_for_viewer(db_session, alice, bob, carol, make_status) -> None:
    """Tag timelines apply the viewer's exclusions."""
    tag = Tag(name="python")
    db_session.add(tag)
    db_session.flush()
    by_bob = make_status(bob, tags=[tag])
    by_carol = make_status(carol, tags=[tag])
    make_status(carol)
    db_session.add(Block(account_id=alice.id, target_account_id=carol.id))
    db_session.flush()

    assert set(_ids(db_session, tag_timeline(tag))) == {by_bob.id, by_carol.id}
    assert _ids(db_session, tag_timeline(tag, alice)) == [by_bob.id]


def test_outbox_timeline_is_public_only(db_session, alice, make_status) -> None:
    """Outboxes list public statuses regardless of viewer."""
    public = make_status(alice)
    make_status(alice, visibility=StatusVisibility.UNLISTED)
    make_status(alice, visibility=StatusVisibility.PRIVATE)
    assert _ids(db_session, outbox_timeline(alice)) == [public.id]


# --- shared filter chain ----------------------------------------------------------


def _all_statuses():
    return scopes.apply_order(select(Status), StatusOrder.OLDEST)


def test_anonymous_filters_only_hide_silenced_accounts(
    db_session, alice, make_account, make_status
) -> None:
    """Anonymous contexts drop statuses by silenced accounts."""
    silenced = make_account(silenced_at=utcnow())
    visible = make_status(alice)
    make_status(silenced)
    assert _ids(db_session, apply_timeline_filters(_all_statuses(), None)) == [visible.id]


def test_silenced_viewer_still_sees_own_statuses(
    db_session, alice, make_account, make_status
) -> None:
    """A silenced viewer sees non-silenced accounts plus themselves."""
    viewer = make_account(silenced_at=utcnow())
    other_silenced = make_account(silenced_at=utcnow())
    by_alice = make_status(alice)
    own = make_status(viewer)
    make_status(other_silenced)

    ids = _ids(db_session, apply_timeline_filters(_all_statuses(), viewer))
    assert ids == [by_alice.id, own.id]


def test_viewer_languages_keep_untagged_statuses(
    db_session, alice, make_account, make_status
) -> None:
    """Chosen languages restrict tagged statuses only."""
    viewer = make_account(chosen_languages=["en", "de"])
    english = make_status(alice, language="en")
    untagged = make_status(alice)
    make_status(alice, language="fr")

    ids = _ids(db_session, apply_timeline_filters(_all_statuses(), viewer))
    assert ids == [english.id, untagged.id]


def test_viewer_domain_blocks_spare_local_accounts(
    db_session, alice, make_account, make_status
) -> None:
    """Blocked domains hide remote authors; local authors always pass."""
    viewer = make_account()
    blocked = make_account(domain="spam.example")
    allowed = make_account(domain="friendly.example")
    db_session.add(AccountDomainBlock(account_id=viewer.id, domain="spam.example"))
    db_session.flush()

    local_status = make_status(alice)
    make_status(blocked, uri="https://spam.example/1")
    remote_status = make_status(allowed, uri="https://friendly.example/1")

    ids = _ids(db_session, apply_timeline_filters(_all_statuses(), viewer))
    assert ids == [local_status.id, remote_status.id]


# --- scopes -----------------------------------------------------------------------


def test_local_and_remote_scopes_partition_statuses(
    db_session, alice, make_account, make_status
) -> None:
    """Every status is either local or remote."""
    remote_account = make_account(domain="remote.example")
    local_status = make_status(alice)
    remote_status = make_status(remote_account, uri="https://remote.example/s/5")
    assert local_status.uri == f"/alice/posts/{local_status.id}"

    assert _ids(db_session, scopes.local(_all_statuses())) == [local_status.id]
    assert _ids(db_session, scopes.remote(_all_statuses())) == [remote_status.id]


def test_reply_and_reblog_scopes(db_session, alice, bob, make_status) -> None:
    """Reply and reblog scopes select the expected subsets."""
    root = make_status(alice)
    reply = make_status(bob, thread=root)
    share = make_status(bob, text="", reblog=root)

    assert _ids(db_session, scopes.only_replies(_all_statuses())) == [reply.id]
    assert _ids(db_session, scopes.without_replies(_all_statuses())) == [root.id, share.id]
    assert _ids(db_session, scopes.without_reblogs(_all_statuses())) == [root.id, reply.id]


def test_tag_scopes(db_session, alice, make_status) -> None:
    """Tag scopes combine with all/none semantics."""
    red, blue = Tag(name="red"), Tag(name="blue")
    db_session.add_all([red, blue])
    db_session.flush()
    both = make_status(alice, tags=[red, blue])
    only_red = make_status(alice, tags=[red])
    untagged = make_status(alice)

    assert _ids(db_session, scopes.tagged_with(_all_statuses(), red.id)) == [both.id, only_red.id]
    assert _ids(db_session, scopes.tagged_with_all(_all_statuses(), [red.id, blue.id])) == [
        both.id
    ]
    assert _ids(db_session, scopes.tagged_with_none(_all_statuses(), [blue.id])) == [
        only_red.id,
        untagged.id,
    ]


def test_including_silenced_accounts(db_session, alice, make_account, make_status) -> None:
    """The inverse silencing scope keeps only silenced authors."""
    silenced = make_account(silenced_at=utcnow())
    make_status(alice)
    hidden = make_status(silenced)
    assert _ids(db_session, scopes.including_silenced_accounts(_all_statuses())) == [hidden.id]


def test_top_order_ranks_by_favourites(db_session, alice, bob, carol, make_status) -> None:
    """Top order puts the most favourited first and breaks ties by age."""
    first = make_status(alice)
    second = make_status(alice)
    third = make_status(alice)
    favourite(db_session, bob, third)
    favourite(db_session, carol, third)
    favourite(db_session, bob, second)

    stmt = outbox_timeline(alice, order=StatusOrder.TOP)
    assert _ids(db_session, stmt) == [third.id, second.id, first.id]


def test_paginate_with_cursors(db_session, alice, make_status) -> None:
    """Cursor pagination walks the timeline in both directions."""
    statuses = [make_status(alice) for _ in range(5)]
    ids = [status.id for status in statuses]
    newest_first = outbox_timeline(alice)

    assert _ids(db_session, scopes.paginate(newest_first, 2)) == [ids[4], ids[3]]
    assert _ids(db_session, scopes.paginate(newest_first, 2, max_id=ids[3])) == [ids[2], ids[1]]
    assert _ids(db_session, scopes.paginate(newest_first, 2, since_id=ids[1])) == [ids[4], ids[3]]
    assert _ids(db_session, scopes.paginate(newest_first, 2, min_id=ids[1])) == [ids[2], ids[3]]
