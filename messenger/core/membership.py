from typing import FrozenSet, List
from .models import GroupChat
from .registry import IdentityRegistry
from .errors import UnknownUser
from ..utils.logger import setup_logger

logger = setup_logger('messenger.membership')

class MembershipIndex:
    """Tracks which users belong to which group chat.

    Member sets live on the registry's GroupChat records and are mutated in
    place under the registry lock. Message history is never touched, so a
    user who leaves keeps their earlier group messages.
    """

    def __init__(self, registry: IdentityRegistry):
        self.registry = registry

    def add_member(self, chat_id: str, user_id: str) -> bool:
        """Add a member to an existing group chat.

        Args:
            chat_id (str): ID of chat to add member to
            user_id (str): ID of user to add

        Returns:
            bool: True if user was added, False if already a member

        Raises:
            UnknownChat: If chat does not exist
            UnknownUser: If user is not registered
        """
        with self.registry.lock:
            chat = self.registry.live_group_chat(chat_id)
            if not self.registry.has_user(user_id):
                logger.warning(f"Attempt to add unknown user {user_id} to group chat {chat_id}")
                raise UnknownUser(user_id)
            if user_id in chat.member_ids:
                logger.debug(f"User {user_id} already in group chat {chat_id}")
                return False
            chat.member_ids.add(user_id)
        logger.info(f"Added user {user_id} to group chat {chat_id}")
        return True

    def remove_member(self, chat_id: str, user_id: str) -> bool:
        """Remove a member from a group chat.

        Args:
            chat_id (str): ID of chat to remove member from
            user_id (str): ID of user to remove

        Returns:
            bool: True if user was removed, False if not a member

        Raises:
            UnknownChat: If chat does not exist
        """
        with self.registry.lock:
            chat = self.registry.live_group_chat(chat_id)
            if user_id not in chat.member_ids:
                logger.debug(f"User {user_id} is not in group chat {chat_id}, nothing to remove")
                return False
            chat.member_ids.discard(user_id)
        logger.info(f"Removed user {user_id} from group chat {chat_id}")
        return True

    def list_members(self, chat_id: str) -> FrozenSet[str]:
        """Get the current members of a group chat.

        Raises:
            UnknownChat: If chat does not exist
        """
        with self.registry.lock:
            return frozenset(self.registry.live_group_chat(chat_id).member_ids)

    def is_member(self, chat_id: str, user_id: str) -> bool:
        """Check if a user is a member of a specific group chat.

        Returns:
            bool: True if user is a member, False if not or if chat doesn't exist
        """
        chat = self.registry.lookup_group_chat(chat_id)
        return chat is not None and user_id in chat.member_ids

    def chats_for_user(self, user_id: str) -> List[GroupChat]:
        """Get all group chats that a user is currently a member of."""
        return [
            chat for chat in self.registry.all_group_chats()
            if user_id in chat.member_ids
        ]
