"""Derived facts about a status, computed from its current field values.

Nothing here writes to the database or caches a result. Relationship objects
are only consulted when they are already present on the instance (assigned
before the first flush, or loaded earlier), so the predicates never trigger a
lazy load of their own. The exceptions are ``proper``, ``content``,
``has_media`` and ``title``, which read the related rows they describe.
"""

from __future__ import annotations

from typing import Literal

from sqlalchemy import inspect

from statusgraph.models import PreviewCard, Status, StatusVisibility

Verb = Literal["post", "share", "delete"]
ObjectType = Literal["note", "comment"]

__all__ = [
    "content",
    "has_media",
    "is_distributable",
    "is_hidden",
    "is_local",
    "is_non_sensitive_with_media",
    "is_quote",
    "is_reblog",
    "is_reply",
    "object_type",
    "preview_card",
    "proper",
    "reblog_countable",
    "reply_countable",
    "selectable_visibilities",
    "title",
    "verb",
]


def _references(status: Status, id_attr: str, relation: str) -> bool:
    if getattr(status, id_attr) is not None:
        return True
    return inspect(status).dict.get(relation) is not None


def _is_destroyed(status: Status) -> bool:
    state = inspect(status)
    return state.deleted or state.was_deleted


def is_reply(status: Status) -> bool:
    """Return True for replies, including remote replies to unknown parents."""
    return _references(status, "in_reply_to_id", "thread") or bool(status.reply)


def is_local(status: Status) -> bool:
    """Return True for statuses authored on this instance."""
    return bool(status.local) or status.uri is None


def is_reblog(status: Status) -> bool:
    """Return True when the status is a share of another status."""
    return _references(status, "reblog_of_id", "reblog")


def is_quote(status: Status) -> bool:
    """Return True when the status quotes another status."""
    return _references(status, "quote_of_id", "quote")


def is_hidden(status: Status) -> bool:
    """Return True when only a restricted audience may see the status."""
    match status.visibility:
        case StatusVisibility.PRIVATE | StatusVisibility.PRIVATE_GROUP | StatusVisibility.LIMITED:
            return True
        case _:
            return False


def is_distributable(status: Status) -> bool:
    """Return True when the status may be shown to anyone."""
    match status.visibility:
        case StatusVisibility.PUBLIC | StatusVisibility.UNLISTED:
            return True
        case _:
            return False


def reblog_countable(status: Status) -> bool:
    """Return True when reblogs of (or by) this status are counted."""
    return is_distributable(status)


def reply_countable(status: Status) -> bool:
    """Return True when replies to (or by) this status are counted."""
    match status.visibility:
        case StatusVisibility.PUBLIC | StatusVisibility.UNLISTED | StatusVisibility.PRIVATE_GROUP:
            return True
        case _:
            return False


def has_media(status: Status) -> bool:
    """Return True when at least one media attachment is linked."""
    return len(status.media_attachments) > 0


def is_non_sensitive_with_media(status: Status) -> bool:
    """Return True for media posts not flagged as sensitive."""
    return not status.sensitive and has_media(status)


def proper(status: Status) -> Status:
    """Return the status whose content should be displayed."""
    if is_reblog(status) and status.reblog is not None:
        return status.reblog
    return status


def content(status: Status) -> str:
    """Return the display text, resolved through reblogs."""
    return proper(status).text


def preview_card(status: Status) -> PreviewCard | None:
    """Return the first linked preview card, if any."""
    return status.preview_cards[0] if status.preview_cards else None


def verb(status: Status) -> Verb:
    """Return the activity verb describing the status."""
    if _is_destroyed(status):
        return "delete"
    return "share" if is_reblog(status) else "post"


def object_type(status: Status) -> ObjectType:
    """Return ``comment`` for replies and ``note`` otherwise."""
    return "comment" if is_reply(status) else "note"


def title(status: Status) -> str:
    """Return a one-line human description of the status."""
    if _is_destroyed(status):
        return f"{status.account.acct} deleted status"
    if is_reblog(status):
        return f"{status.account.acct} shared a status by {status.reblog.account.acct}"
    return f"New status by {status.account.acct}"


def selectable_visibilities() -> list[StatusVisibility]:
    """Return the visibility tiers a client may choose when composing."""
    return [
        visibility
        for visibility in StatusVisibility
        if visibility not in (StatusVisibility.LIMITED, StatusVisibility.PRIVATE_GROUP)
    ]
