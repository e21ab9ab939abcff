from dataclasses import dataclass, field
from typing import ClassVar, Set, Union

@dataclass
class User:
    """Represents a user in the messenger.

    Attributes:
        id (str): Opaque unique identifier issued by the registry
        display_name (str): User's chosen display name
    """
    id: str
    display_name: str

@dataclass
class GroupChat:
    """Represents a group chat.

    Attributes:
        id (str): Opaque unique identifier issued by the registry
        name (str): Display name of the chat (not unique)
        member_ids (Set[str]): Set of registered user IDs currently in the chat
        created_ts (int): Unix timestamp in milliseconds when chat was created
    """
    id: str
    name: str
    member_ids: Set[str] = field(default_factory=set)
    created_ts: int = 0

@dataclass(frozen=True)
class TextContent:
    """Plain text payload. The only variant that feeds the search index."""
    kind: ClassVar[str] = "text"
    text: str

@dataclass(frozen=True)
class ImageContent:
    """Image reference with an optional caption."""
    kind: ClassVar[str] = "image"
    url: str
    caption: str = ""

@dataclass(frozen=True)
class FileContent:
    """File attachment described by name and size."""
    kind: ClassVar[str] = "file"
    filename: str
    size_bytes: int = 0

Content = Union[TextContent, ImageContent, FileContent]

@dataclass(frozen=True)
class PrivateMessage:
    """A direct message between two users.

    Attributes:
        seq (int): Global sequence number, the sole ordering key
        sender_id (str): ID of the user who sent the message
        receiver_id (str): ID of the recipient
        content (Content): Message payload
        sent_ts (int): Unix timestamp in milliseconds, advisory only
    """
    seq: int
    sender_id: str
    receiver_id: str
    content: Content
    sent_ts: int

    is_group_message: ClassVar[bool] = False

    def involves(self, user_id: str) -> bool:
        return self.sender_id == user_id or self.receiver_id == user_id

@dataclass(frozen=True)
class GroupMessage:
    """A message posted to a group chat.

    The sender does not have to be a member of the chat, neither at send time
    nor later: history stays valid after membership changes.

    Attributes:
        seq (int): Global sequence number, the sole ordering key
        sender_id (str): ID of the user who sent the message
        chat_id (str): ID of the target group chat
        content (Content): Message payload
        sent_ts (int): Unix timestamp in milliseconds, advisory only
    """
    seq: int
    sender_id: str
    chat_id: str
    content: Content
    sent_ts: int

    is_group_message: ClassVar[bool] = True

Message = Union[PrivateMessage, GroupMessage]
