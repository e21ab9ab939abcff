from typing import FrozenSet, Iterable, List, Optional
from .models import Content, GroupChat, GroupMessage, Message, PrivateMessage, TextContent, User
from .registry import IdentityRegistry
from .membership import MembershipIndex
from .search import SearchIndex, normalize_words
from .store import MessageStore
from .printer import ContentPrinter
from .errors import InvalidQuery
from ..utils.logger import setup_logger

logger = setup_logger('messenger.facade')

class Messenger:
    """Entry point used by display and provisioning collaborators.

    Composes the identity registry, membership index, message store and
    search index. Every method is safe to call from several threads.
    """

    def __init__(self, registry: Optional[IdentityRegistry] = None,
                 index: Optional[SearchIndex] = None,
                 printer: Optional[ContentPrinter] = None):
        """Initialize the messenger, creating any component not supplied.

        Attributes:
            registry: Identity registry instance
            membership: Membership index over the registry's chats
            index: Search index instance
            store: Message store writing into registry-validated IDs and the index
            printer: Content printer used by render()
        """
        self.registry = registry or IdentityRegistry()
        self.membership = MembershipIndex(self.registry)
        self.index = index or SearchIndex()
        self.store = MessageStore(self.registry, self.index)
        self.printer = printer or ContentPrinter()

    # Identity and membership

    def create_user(self, display_name: str) -> str:
        return self.registry.create_user(display_name)

    def create_group_chat(self, name: str, initial_members: Iterable[str] = ()) -> str:
        return self.registry.create_group_chat(name, initial_members)

    def add_member(self, chat_id: str, user_id: str) -> bool:
        return self.membership.add_member(chat_id, user_id)

    def remove_member(self, chat_id: str, user_id: str) -> bool:
        return self.membership.remove_member(chat_id, user_id)

    def list_members(self, chat_id: str) -> FrozenSet[str]:
        return self.membership.list_members(chat_id)

    # Sending

    def send_private(self, sender_id: str, receiver_id: str, content: Content) -> PrivateMessage:
        """Send a private message and return the stored record.

        Raises:
            UnknownUser: If sender or receiver is not registered
        """
        seq = self.store.append_private_message(sender_id, receiver_id, content)
        return self.store.get(seq)

    def send_group(self, sender_id: str, chat_id: str, content: Content) -> GroupMessage:
        """Send a message to a group chat and return the stored record.

        Membership is not checked: anyone registered may post.

        Raises:
            UnknownChat: If the chat does not exist
            UnknownUser: If the sender is not registered
        """
        seq = self.store.append_group_message(sender_id, chat_id, content)
        return self.store.get(seq)

    def send_private_text(self, sender_id: str, receiver_id: str, text: str) -> PrivateMessage:
        return self.send_private(sender_id, receiver_id, TextContent(text))

    def send_group_text(self, sender_id: str, chat_id: str, text: str) -> GroupMessage:
        return self.send_group(sender_id, chat_id, TextContent(text))

    # Reading

    def get_private_history(self, user_id: str, other_id: Optional[str] = None) -> List[PrivateMessage]:
        """Get a user's private messages, optionally only those with one peer.

        Args:
            user_id (str): User whose history to read
            other_id (str, optional): Restrict to the conversation with this user

        Returns:
            List[PrivateMessage]: Messages in send (sequence) order

        Raises:
            UnknownUser: If either ID is not registered
        """
        self.registry.require_user(user_id)
        if other_id is None:
            return list(self.store.list_private_messages_for_user(user_id))
        self.registry.require_user(other_id)
        return list(self.store.list_private_messages_between(user_id, other_id))

    def get_group_history(self, chat_id: str) -> List[GroupMessage]:
        """Get all messages of a group chat in send order.

        Raises:
            UnknownChat: If the chat does not exist
        """
        self.registry.require_group_chat(chat_id)
        return list(self.store.list_group_messages(chat_id))

    def search_messages(self, words: Iterable[str], match_any: bool = False) -> List[Message]:
        """Find messages by words in their text content.

        Args:
            words (Iterable[str]): Query words, matched case-insensitively
            match_any (bool): False (default) requires every word to be
                present; True accepts messages containing any of them

        Returns:
            List[Message]: Matching records in ascending sequence order

        Raises:
            InvalidQuery: If the query holds no searchable word
        """
        words = list(words)
        if not normalize_words(words):
            logger.warning(f"Rejected search without searchable words: {words!r}")
            raise InvalidQuery("Search needs at least one word")
        if match_any:
            seqs = self.index.search_any(words)
        else:
            seqs = self.index.search_words(words)
        logger.debug(f"Search {words!r} (match_any={match_any}) found {len(seqs)} messages")
        return self.store.get_many(seqs)

    def render(self, content) -> str:
        return self.printer.print(content)

    # Enumeration for display collaborators

    def users(self) -> List[User]:
        return self.registry.all_users()

    def group_chats(self) -> List[GroupChat]:
        return self.registry.all_group_chats()

    def chats_for_user(self, user_id: str) -> List[GroupChat]:
        return self.membership.chats_for_user(user_id)

    def member_names(self, chat_id: str) -> List[str]:
        """Get the display names of a chat's current members, sorted.

        Raises:
            UnknownChat: If the chat does not exist
        """
        names = []
        for user_id in self.membership.list_members(chat_id):
            user = self.registry.lookup_user(user_id)
            if user:
                names.append(user.display_name)
        return sorted(names)
