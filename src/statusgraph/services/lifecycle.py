"""Creation and destruction of statuses.

Creation runs a fixed normalization pipeline, validates the result, persists
it inside a SAVEPOINT and then updates the counter caches. Destruction
cascades to dependent rows and, unless performed as part of a mass
destruction, reverses the counter contributions.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from pydantic import ValidationError
from sqlalchemy import delete, inspect, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from statusgraph.core.errors import StatusNotFoundError, StatusValidationError
from statusgraph.core.settings import settings
from statusgraph.db.time import utcnow
from statusgraph.models import (
    Account,
    Conversation,
    Favourite,
    GroupPinnedStatus,
    MediaAttachment,
    Poll,
    Status,
    StatusBookmark,
    StatusPin,
    StatusRevision,
    StatusStat,
    StatusVisibility,
)
from statusgraph.repositories.status_repo import StatusRepository
from statusgraph.schemas.status import StatusCreate
from statusgraph.services import counters
from statusgraph.services.activity import (
    LOCAL_STATUSES_KEY,
    ActivityTracker,
    get_activity_tracker,
    increment_after_commit,
)
from statusgraph.services.resolver import (
    has_media,
    is_distributable,
    is_local,
    is_quote,
    is_reblog,
    is_reply,
)
from statusgraph.services.snowflake import next_id

logger = logging.getLogger(__name__)

__all__ = [
    "create_status",
    "destroy_status",
    "destroy_statuses",
    "normalize",
    "post_status",
    "validate",
]


# --- Normalization -----------------------------------------------------------------


def _bind_references(session: Session, status: Status) -> None:
    """Make relationship objects and identifier columns agree."""
    pairs = (
        ("account_id", "account", Account),
        ("in_reply_to_id", "thread", Status),
        ("reblog_of_id", "reblog", Status),
        ("quote_of_id", "quote", Status),
    )
    loaded = inspect(status).dict
    for id_attr, relation, model in pairs:
        related = loaded.get(relation)
        if related is not None:
            if related.id is not None:
                setattr(status, id_attr, related.id)
        elif getattr(status, id_attr) is not None:
            related = session.get(model, getattr(status, id_attr))
            if related is not None:
                setattr(status, relation, related)


def _set_thread(status: Status, thread: Status | None) -> None:
    status.thread = thread
    status.in_reply_to_id = thread.id if thread is not None else None


def _prepare_contents(status: Status) -> None:
    status.text = status.text or ""
    status.spoiler_text = status.spoiler_text or ""
    if is_local(status):
        status.text = status.text.strip()
        status.spoiler_text = status.spoiler_text.strip()


def _set_reblog(status: Status) -> None:
    target = status.reblog
    if target is not None and is_reblog(target) and target.reblog is not None:
        status.reblog = target.reblog
        status.reblog_of_id = target.reblog.id


def _set_visibility(status: Status, account: Account) -> None:
    if status.visibility is None and status.reblog is not None:
        status.visibility = status.reblog.visibility
    if status.visibility is None:
        status.visibility = StatusVisibility.PRIVATE if account.locked else StatusVisibility.PUBLIC
    if status.sensitive is None:
        status.sensitive = False


def _set_group_id(session: Session, status: Status) -> None:
    thread = status.thread
    if thread is not None and thread.group_id is not None:
        status.group_id = thread.group_id

    if is_reply(status) and thread is not None and status.in_reply_to_id is not None:
        # The stored row wins over whatever the in-memory parent carries.
        found, group_id = StatusRepository(session).stored_group_id(status.in_reply_to_id)
        if found:
            status.group_id = group_id


def _carried_over_reply_to_account_id(status: Status, thread: Status) -> int | None:
    if thread.account_id == status.account_id and is_reply(thread):
        return thread.in_reply_to_account_id
    return thread.account_id


def _set_conversation(status: Status) -> None:
    thread = status.thread
    if thread is not None and is_reblog(thread) and thread.reblog is not None:
        thread = thread.reblog
        _set_thread(status, thread)

    if not status.reply:
        status.reply = status.in_reply_to_id is not None or thread is not None

    has_conversation = status.conversation_id is not None or status.conversation is not None
    if is_reply(status) and thread is not None:
        status.in_reply_to_account_id = _carried_over_reply_to_account_id(status, thread)
        if not has_conversation:
            if thread.conversation_id is not None:
                status.conversation_id = thread.conversation_id
            else:
                status.conversation = thread.conversation
    elif not has_conversation:
        status.conversation = Conversation()


def normalize(session: Session, status: Status) -> None:
    """Fill in derived fields before ``status`` is validated and persisted.

    Args:
        session: Database session used to resolve referenced rows.
        status: Unsaved status; mutated in place.

    Notes:
        Never raises on missing optional relations. A reply whose parent row
        cannot be found keeps whatever group it was given.
    """
    _bind_references(session, status)
    account = status.account
    if account is None:
        return

    _prepare_contents(status)
    _set_reblog(status)
    _set_visibility(status, account)
    _set_conversation(status)
    status.has_quote = is_quote(status)
    _set_group_id(session, status)
    status.local = account.is_local


# --- Validation --------------------------------------------------------------------


def validate(session: Session, status: Status) -> dict[str, list[str]]:
    """Return field-level problems with a normalized ``status`` (empty when valid)."""
    errors: dict[str, list[str]] = {}

    def add(field: str, message: str) -> None:
        errors.setdefault(field, []).append(message)

    repo = StatusRepository(session)

    if status.account is None:
        add("account", "must exist")
        return errors

    if not status.local and not status.uri:
        add("uri", "can't be blank")
    if status.uri and repo.uri_taken(status.uri, excluding_id=status.id):
        add("uri", "has already been taken")

    text = status.text or ""
    if not text.strip() and not has_media(status) and not is_reblog(status):
        add("text", "can't be blank")
    length = len(text) + len(status.spoiler_text or "")
    if status.local and not is_reblog(status) and length > settings.max_status_chars:
        add("text", f"is too long (maximum is {settings.max_status_chars} characters)")

    if is_reblog(status):
        if status.reblog_of_id is not None and repo.reblog_exists(
            status.account_id, status.reblog_of_id
        ):
            add("reblog", "has already been taken")
        if status.visibility == StatusVisibility.LIMITED:
            add("visibility", "is reserved")

    return errors


def _integrity_errors(error: IntegrityError) -> dict[str, list[str]]:
    message = str(error.orig)
    if "reblog" in message:
        return {"reblog": ["has already been taken"]}
    if "uri" in message:
        return {"uri": ["has already been taken"]}
    return {"base": [message]}


# --- Creation ----------------------------------------------------------------------


def _store_uri(status: Status) -> None:
    if status.uri is None:
        status.uri = f"/{status.account.username}/posts/{status.id}"


def _set_poll_id(session: Session, status: Status) -> None:
    if status.poll is None:
        return
    session.flush()
    status.poll_id = status.poll.id


def create_status(
    session: Session,
    status: Status,
    *,
    activity: ActivityTracker | None = None,
    override_timestamps: bool = False,
) -> Status:
    """Normalize, validate and persist a new status.

    Args:
        session: Database session; the caller owns the surrounding transaction.
        status: Unsaved status carrying at least its author.
        activity: Sink for the weekly local-activity signal, recorded once the
            session commits.
        override_timestamps: Base the identifier on the current time even if
            ``created_at`` was supplied.

    Returns:
        The persisted status.

    Raises:
        StatusValidationError: If the status is invalid, including uniqueness
            conflicts detected by the database at write time.
    """
    normalize(session, status)
    errors = validate(session, status)
    if errors:
        raise StatusValidationError(errors)

    if status.id is None:
        status.id = next_id(None if override_timestamps else status.created_at)

    with session.begin_nested():
        try:
            with session.begin_nested():
                session.add(status)
                session.flush()
        except IntegrityError as err:
            logger.warning("Rejected status for account %s: %s", status.account_id, err.orig)
            raise StatusValidationError(_integrity_errors(err)) from err

        if status.local:
            _store_uri(status)
        _set_poll_id(session, status)
        session.flush()
        counters.on_status_created(session, status)

    if status.local and is_distributable(status):
        tracker = activity if activity is not None else get_activity_tracker()
        increment_after_commit(session, tracker, LOCAL_STATUSES_KEY)

    logger.info("Created status %s by account %s", status.id, status.account_id)
    return status


def _schema_errors(error: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "base"
        errors.setdefault(field, []).append(item["msg"])
    return errors


def post_status(
    session: Session,
    account: Account,
    payload: StatusCreate | dict,
    *,
    activity: ActivityTracker | None = None,
) -> Status:
    """Compose and create a status for ``account`` from client input.

    Raises:
        StatusValidationError: If the payload or the resulting status is invalid.
        StatusNotFoundError: If a referenced status does not exist.
    """
    if not isinstance(payload, StatusCreate):
        try:
            payload = StatusCreate.model_validate(payload)
        except ValidationError as err:
            raise StatusValidationError(_schema_errors(err)) from err

    repo = StatusRepository(session)
    references: dict[str, Status | None] = {}
    for field in ("in_reply_to_id", "reblog_of_id", "quote_of_id"):
        status_id = getattr(payload, field)
        references[field] = None
        if status_id is not None:
            references[field] = repo.get_by_id(status_id)
            if references[field] is None:
                raise StatusNotFoundError(field, status_id)

    media: list[MediaAttachment] = []
    if payload.media_ids:
        media = list(
            session.scalars(
                select(MediaAttachment).where(
                    MediaAttachment.id.in_(payload.media_ids),
                    MediaAttachment.account_id == account.id,
                    MediaAttachment.status_id.is_(None),
                )
            )
        )
        if len(media) != len(set(payload.media_ids)):
            raise StatusValidationError(
                {"media_ids": ["contains unknown or already attached media"]}
            )

    status = Status(
        account=account,
        text=payload.text,
        spoiler_text=payload.spoiler_text,
        markdown=payload.markdown,
        sensitive=payload.sensitive,
        visibility=payload.visibility,
        language=payload.language,
        group_id=payload.group_id,
        thread=references["in_reply_to_id"],
        reblog=references["reblog_of_id"],
        quote=references["quote_of_id"],
        media_attachments=media,
    )
    if payload.poll is not None:
        status.poll = Poll(
            account_id=account.id,
            options=payload.poll.options,
            multiple=payload.poll.multiple,
            expires_at=utcnow() + timedelta(seconds=payload.poll.expires_in),
        )

    return create_status(session, status, activity=activity)


# --- Destruction -------------------------------------------------------------------


def _destroy(session: Session, status: Status, *, mass_destruction: bool) -> None:
    # Marked first so counter updates aimed at this status become no-ops.
    session.delete(status)

    for reblog in StatusRepository(session).reblogs_of(status.id):
        _destroy(session, reblog, mass_destruction=mass_destruction)

    for model in (Favourite, StatusBookmark, StatusPin, GroupPinnedStatus, StatusRevision):
        session.execute(delete(model).where(model.status_id == status.id))
    session.execute(delete(StatusStat).where(StatusStat.status_id == status.id))

    session.execute(
        update(Status)
        .where(Status.quote_of_id == status.id)
        .values(quote_of_id=None, has_quote=False)
        .execution_options(synchronize_session="fetch")
    )
    session.execute(
        update(Status)
        .where(Status.in_reply_to_id == status.id)
        .values(in_reply_to_id=None)
        .execution_options(synchronize_session="fetch")
    )

    counters.on_status_destroyed(session, status, mass_destruction=mass_destruction)


def destroy_status(session: Session, status: Status, *, mass_destruction: bool = False) -> None:
    """Delete ``status`` together with its dependent rows.

    Reblogs of the status are destroyed with it. Quotes and replies lose their
    reference and media attachments are detached. Counter caches on the
    author, the reblog target and the thread parent are decremented unless
    ``mass_destruction`` is set. Any failure rolls the whole cascade back.
    """
    if inspect(status).was_deleted:
        return
    with session.begin_nested():
        _destroy(session, status, mass_destruction=mass_destruction)
        session.flush()
    logger.info("Destroyed status %s (mass=%s)", status.id, mass_destruction)


def destroy_statuses(session: Session, statuses: list[Status]) -> None:
    """Destroy a batch of statuses without per-item counter maintenance."""
    with session.begin_nested():
        for status in statuses:
            if not inspect(status).was_deleted and status not in session.deleted:
                _destroy(session, status, mass_destruction=True)
        session.flush()
    logger.info("Mass-destroyed %d statuses", len(statuses))
