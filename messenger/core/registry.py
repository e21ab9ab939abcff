import threading
import time
import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Optional
from .models import User, GroupChat
from .errors import UnknownUser, UnknownChat
from ..utils.logger import setup_logger

logger = setup_logger('messenger.registry')


def _snapshot_chat(chat: GroupChat) -> GroupChat:
    return replace(chat, member_ids=set(chat.member_ids))


class IdentityRegistry:
    """Owns the canonical User and GroupChat records and issues their IDs.

    Every record handed out is a copy, so callers can never change registry
    state behind its back. Other components keep IDs only.
    """

    def __init__(self):
        """Initialize an empty registry.

        Attributes:
            users_by_id (Dict[str, User]): Registered users keyed by ID
            chats_by_id (Dict[str, GroupChat]): Group chats keyed by ID
            lock (threading.RLock): Guards both dictionaries and member sets
        """
        self.users_by_id: Dict[str, User] = {}
        self.chats_by_id: Dict[str, GroupChat] = {}
        self.lock = threading.RLock()

    def create_user(self, display_name: str) -> str:
        """Register a new user.

        Args:
            display_name (str): User's display name

        Returns:
            str: Freshly allocated user ID
        """
        user_id = uuid.uuid4().hex
        with self.lock:
            self.users_by_id[user_id] = User(id=user_id, display_name=display_name)
        logger.info(f"New user registered: {display_name} (ID: {user_id})")
        return user_id

    def create_group_chat(self, name: str, initial_members: Iterable[str] = ()) -> str:
        """Create a new group chat.

        Args:
            name (str): Display name of the chat
            initial_members (Iterable[str]): IDs of the first members

        Returns:
            str: Freshly allocated chat ID

        Raises:
            UnknownUser: If any initial member is not registered. Nothing is
                created in that case.
        """
        members = set(initial_members)
        chat_id = uuid.uuid4().hex
        with self.lock:
            for user_id in members:
                if user_id not in self.users_by_id:
                    logger.warning(f"Attempt to create group chat '{name}' with unknown member {user_id}")
                    raise UnknownUser(user_id)
            self.chats_by_id[chat_id] = GroupChat(
                id=chat_id,
                name=name,
                member_ids=members,
                created_ts=int(time.time() * 1000),
            )
        logger.info(f"New group chat created: {name} (ID: {chat_id}) with {len(members)} members")
        return chat_id

    def lookup_user(self, user_id: str) -> Optional[User]:
        with self.lock:
            user = self.users_by_id.get(user_id)
            return replace(user) if user else None

    def require_user(self, user_id: str) -> User:
        """Get user by ID or raise UnknownUser."""
        user = self.lookup_user(user_id)
        if user is None:
            logger.warning(f"Unknown user requested: {user_id}")
            raise UnknownUser(user_id)
        return user

    def lookup_group_chat(self, chat_id: str) -> Optional[GroupChat]:
        with self.lock:
            chat = self.chats_by_id.get(chat_id)
            return _snapshot_chat(chat) if chat else None

    def require_group_chat(self, chat_id: str) -> GroupChat:
        """Get group chat by ID or raise UnknownChat."""
        chat = self.lookup_group_chat(chat_id)
        if chat is None:
            logger.warning(f"Unknown group chat requested: {chat_id}")
            raise UnknownChat(chat_id)
        return chat

    def has_user(self, user_id: str) -> bool:
        with self.lock:
            return user_id in self.users_by_id

    def has_group_chat(self, chat_id: str) -> bool:
        with self.lock:
            return chat_id in self.chats_by_id

    def all_users(self) -> List[User]:
        """Get all users in registration order."""
        with self.lock:
            return [replace(u) for u in self.users_by_id.values()]

    def all_group_chats(self) -> List[GroupChat]:
        """Get all group chats in creation order."""
        with self.lock:
            return [_snapshot_chat(c) for c in self.chats_by_id.values()]

    def find_by_display_name(self, display_name: str) -> Optional[User]:
        """Find user by display name (case sensitive).

        Args:
            display_name (str): User's display name to search for

        Returns:
            Optional[User]: First registered user with that name, None otherwise
        """
        with self.lock:
            for user in self.users_by_id.values():
                if user.display_name == display_name:
                    return replace(user)
        return None

    def find_group_chat_by_name(self, name: str) -> Optional[GroupChat]:
        with self.lock:
            for chat in self.chats_by_id.values():
                if chat.name == name:
                    return _snapshot_chat(chat)
        return None

    def rename_user(self, user_id: str, display_name: str) -> None:
        with self.lock:
            user = self.users_by_id.get(user_id)
            if user is None:
                logger.warning(f"Attempt to rename unknown user {user_id}")
                raise UnknownUser(user_id)
            old_name, user.display_name = user.display_name, display_name
        logger.info(f"User {user_id} renamed from '{old_name}' to '{display_name}'")

    def rename_group_chat(self, chat_id: str, name: str) -> None:
        with self.lock:
            chat = self.chats_by_id.get(chat_id)
            if chat is None:
                logger.warning(f"Attempt to rename unknown group chat {chat_id}")
                raise UnknownChat(chat_id)
            old_name, chat.name = chat.name, name
        logger.info(f"Group chat {chat_id} renamed from '{old_name}' to '{name}'")

    def live_group_chat(self, chat_id: str) -> GroupChat:
        """Get the registry-owned chat record for in-place mutation.

        The caller must hold ``self.lock`` for as long as it uses the record.

        Raises:
            UnknownChat: If the chat does not exist
        """
        chat = self.chats_by_id.get(chat_id)
        if chat is None:
            logger.warning(f"Unknown group chat requested: {chat_id}")
            raise UnknownChat(chat_id)
        return chat
