"""Inverted word index over text message content.

Tokens are case-folded runs of letters and digits; anything else
(whitespace, punctuation, underscores) separates them, so "hello_karl" is
found by "hello". Queries go through the same normalization, so ``"Hello,"``
in a message matches a search for ``"HELLO"``.
"""
import re
import threading
from typing import Dict, Iterable, List, Set
from .models import TextContent
from ..utils.logger import setup_logger

logger = setup_logger('messenger.search')

_WORD_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> List[str]:
    """Split text into case-folded word tokens, in order, duplicates kept."""
    return [m.group(0).casefold() for m in _WORD_RE.finditer(text)]


def normalize_words(words: Iterable[str]) -> List[str]:
    """Normalize a query into its distinct tokens, first occurrence first.

    A query word that itself contains punctuation ("don't") contributes every
    token it splits into.
    """
    seen = {}
    for word in words:
        for token in tokenize(word):
            seen.setdefault(token, None)
    return list(seen)


def content_tokens(content) -> Set[str]:
    """Distinct tokens of a content value; empty for non-text variants.

    Raises:
        TypeError: If text content does not hold a string
    """
    if not isinstance(content, TextContent):
        return set()
    return set(tokenize(content.text))


class SearchIndex:
    """Maps tokens to the set of message sequence numbers that contain them."""

    def __init__(self):
        self._postings: Dict[str, Set[int]] = {}
        self._lock = threading.RLock()

    def index_message(self, seq: int, content) -> int:
        """Add a message's tokens to the index.

        Non-text content contributes no tokens.

        Args:
            seq (int): Sequence number of the message
            content: Message content of any variant

        Returns:
            int: Number of distinct tokens indexed
        """
        return self.add_postings(seq, content_tokens(content))

    def add_postings(self, seq: int, tokens: Set[str]) -> int:
        """Add one message's already extracted tokens to the index."""
        with self._lock:
            for token in tokens:
                self._postings.setdefault(token, set()).add(seq)
        logger.debug(f"Indexed message {seq} with {len(tokens)} tokens")
        return len(tokens)

    def search_words(self, words: Iterable[str]) -> Set[int]:
        """Find messages containing every given word (AND).

        Empty input, or input without any word characters, matches nothing.
        """
        tokens = normalize_words(words)
        if not tokens:
            return set()
        with self._lock:
            postings = [self._postings.get(t, ()) for t in tokens]
            # Start from the rarest token to keep the intersection small
            postings.sort(key=len)
            result = set(postings[0])
            for p in postings[1:]:
                if not result:
                    break
                result.intersection_update(p)
        logger.debug(f"search_words {tokens} -> {len(result)} hits")
        return result

    def search_any(self, words: Iterable[str]) -> Set[int]:
        """Find messages containing at least one of the given words (OR)."""
        tokens = normalize_words(words)
        result: Set[int] = set()
        with self._lock:
            for token in tokens:
                result.update(self._postings.get(token, ()))
        logger.debug(f"search_any {tokens} -> {len(result)} hits")
        return result

    def postings(self, token: str) -> Set[int]:
        """Get a copy of the posting set for one (already normalized) token."""
        with self._lock:
            return set(self._postings.get(token.casefold(), ()))

    @property
    def token_count(self) -> int:
        with self._lock:
            return len(self._postings)

    def __contains__(self, token: str) -> bool:
        with self._lock:
            return token.casefold() in self._postings
