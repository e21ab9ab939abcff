import threading
import time
from typing import Dict, Iterable, Iterator, List, Optional
from .models import Content, GroupMessage, Message, PrivateMessage
from .registry import IdentityRegistry
from .search import SearchIndex, content_tokens
from .errors import UnknownUser
from ..utils.logger import setup_logger

logger = setup_logger('messenger.store')

class MessageStore:
    """Append-only log of private and group messages.

    Private and group messages share one sequence counter, so the sequence
    number orders every message in the process. Appending, assigning the
    sequence number and updating the search index happen under a single
    lock: a reader never sees a sequence number whose postings are missing.

    Lock order is store -> registry -> index. Nothing acquires them in the
    opposite direction.
    """

    def __init__(self, registry: IdentityRegistry, index: SearchIndex):
        """Initialize an empty message store.

        Args:
            registry (IdentityRegistry): Used to validate user and chat IDs
            index (SearchIndex): Updated synchronously on every append

        Attributes:
            messages_by_seq (Dict[int, Message]): All records, in seq order
            _private_by_user (Dict[str, List[int]]): Private seqs per participant
            _group_by_chat (Dict[str, List[int]]): Group seqs per chat
        """
        self.registry = registry
        self.index = index
        self.messages_by_seq: Dict[int, Message] = {}
        self._private_by_user: Dict[str, List[int]] = {}
        self._group_by_chat: Dict[str, List[int]] = {}
        self._last_seq = 0
        self._lock = threading.RLock()

    def _commit(self, message: Message, tokens) -> None:
        # Caller holds self._lock; nothing here may raise once _last_seq is bumped
        self.messages_by_seq[message.seq] = message
        self.index.add_postings(message.seq, tokens)

    def append_private_message(self, sender_id: str, receiver_id: str, content: Content) -> int:
        """Append a private message.

        Args:
            sender_id (str): ID of the sending user
            receiver_id (str): ID of the receiving user
            content (Content): Message payload

        Returns:
            int: Sequence number assigned to the message

        Raises:
            UnknownUser: If sender or receiver is not registered
            TypeError: If text content does not hold a string. Nothing is
                stored and no sequence number is used up.
        """
        with self._lock:
            for user_id in (sender_id, receiver_id):
                if not self.registry.has_user(user_id):
                    logger.warning(f"Rejected private message from {sender_id} to {receiver_id}: unknown user {user_id}")
                    raise UnknownUser(user_id)
            tokens = content_tokens(content)
            self._last_seq += 1
            msg = PrivateMessage(
                seq=self._last_seq,
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                sent_ts=int(time.time() * 1000),
            )
            self._commit(msg, tokens)
            self._private_by_user.setdefault(sender_id, []).append(msg.seq)
            if receiver_id != sender_id:
                self._private_by_user.setdefault(receiver_id, []).append(msg.seq)
        logger.debug(f"New direct message saved: {msg.seq} from {sender_id} to {receiver_id}")
        return msg.seq

    def append_group_message(self, sender_id: str, chat_id: str, content: Content) -> int:
        """Append a group message.

        The sender does not have to be a member of the chat.

        Args:
            sender_id (str): ID of the sending user
            chat_id (str): ID of the target group chat
            content (Content): Message payload

        Returns:
            int: Sequence number assigned to the message

        Raises:
            UnknownChat: If the chat does not exist
            UnknownUser: If the sender is not registered
            TypeError: If text content does not hold a string
        """
        with self._lock:
            self.registry.require_group_chat(chat_id)
            if not self.registry.has_user(sender_id):
                logger.warning(f"Rejected group message to {chat_id}: unknown sender {sender_id}")
                raise UnknownUser(sender_id)
            tokens = content_tokens(content)
            self._last_seq += 1
            msg = GroupMessage(
                seq=self._last_seq,
                sender_id=sender_id,
                chat_id=chat_id,
                content=content,
                sent_ts=int(time.time() * 1000),
            )
            self._commit(msg, tokens)
            self._group_by_chat.setdefault(chat_id, []).append(msg.seq)
        logger.debug(f"New group message saved: {msg.seq} from {sender_id} to group chat {chat_id}")
        return msg.seq

    def _snapshot(self, seqs: Iterable[int]) -> List[Message]:
        with self._lock:
            return [self.messages_by_seq[s] for s in seqs]

    def list_private_messages_for_user(self, user_id: str) -> Iterator[PrivateMessage]:
        """Iterate over private messages sent or received by a user.

        The snapshot is taken when this is called; messages appended while
        iterating are not included.

        Returns:
            Iterator[PrivateMessage]: Messages in ascending sequence order
        """
        with self._lock:
            snapshot = self._snapshot(self._private_by_user.get(user_id, ()))
        return iter(snapshot)

    def list_private_messages_between(self, user_a: str, user_b: str) -> Iterator[PrivateMessage]:
        """Iterate over the conversation between two users, in sequence order.

        Symmetric in its arguments. With ``user_a == user_b`` this yields the
        user's notes to self.
        """
        with self._lock:
            snapshot = self._snapshot(self._private_by_user.get(user_a, ()))
        if user_a == user_b:
            return (m for m in snapshot if m.sender_id == m.receiver_id == user_a)
        return (m for m in snapshot if m.involves(user_b))

    def list_group_messages(self, chat_id: str) -> Iterator[GroupMessage]:
        """Iterate over a group chat's messages in ascending sequence order."""
        with self._lock:
            snapshot = self._snapshot(self._group_by_chat.get(chat_id, ()))
        return iter(snapshot)

    def get(self, seq: int) -> Optional[Message]:
        with self._lock:
            return self.messages_by_seq.get(seq)

    def get_many(self, seqs: Iterable[int]) -> List[Message]:
        """Resolve sequence numbers to records.

        Returns:
            List[Message]: Known records in ascending sequence order; unknown
                sequence numbers are skipped
        """
        with self._lock:
            found = [self.messages_by_seq[s] for s in set(seqs) if s in self.messages_by_seq]
        found.sort(key=lambda m: m.seq)
        return found

    @property
    def last_seq(self) -> int:
        with self._lock:
            return self._last_seq

    def __len__(self) -> int:
        with self._lock:
            return len(self.messages_by_seq)
