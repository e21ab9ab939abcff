"""Error types raised by the messenger core.

All of them derive from ValueError so callers that already guard store
operations with ``except ValueError`` keep working.
"""
from typing import Optional


class MessengerError(ValueError):
    def __init__(self, message: str, code: str = "messenger_error"):
        super().__init__(message)
        self.code = code


class UnknownUser(MessengerError):
    def __init__(self, user_id: Optional[str]):
        super().__init__(f"User {user_id} does not exist", code="unknown_user")
        self.user_id = user_id


class UnknownChat(MessengerError):
    def __init__(self, chat_id: Optional[str]):
        super().__init__(f"Group chat {chat_id} does not exist", code="unknown_chat")
        self.chat_id = chat_id


class InvalidQuery(MessengerError):
    def __init__(self, message: str):
        super().__init__(message, code="invalid_query")
