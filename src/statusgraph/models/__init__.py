"""SQLAlchemy models for statusgraph."""

from .account import Account, AccountDomainBlock, AccountStat, Block, Follow, Mute
from .conversation import Conversation
from .group import Group, GroupPinnedStatus
from .interaction import Favourite, StatusBookmark, StatusPin
from .media import MediaAttachment, PreviewCard, preview_cards_statuses
from .mention import Mention
from .poll import Poll
from .revision import StatusRevision
from .status import Status, StatusStat, StatusVisibility
from .tag import Tag, statuses_tags

__all__ = [
    "Account", "AccountDomainBlock", "AccountStat", "Block", "Follow", "Mute",
    "Conversation",
    "Group", "GroupPinnedStatus",
    "Favourite", "StatusBookmark", "StatusPin",
    "MediaAttachment", "PreviewCard", "preview_cards_statuses",
    "Mention",
    "Poll",
    "StatusRevision",
    "Status", "StatusStat", "StatusVisibility",
    "Tag", "statuses_tags",
]
