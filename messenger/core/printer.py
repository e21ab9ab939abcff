"""Rendering of message content and history lines for display."""
from functools import singledispatch
from typing import Optional
from .models import TextContent, ImageContent, FileContent, PrivateMessage, GroupMessage
from .registry import IdentityRegistry


@singledispatch
def render_content(content) -> str:
    """Render any content variant as a display string.

    Never fails: a variant without a registered renderer gets a fixed
    fallback text.
    """
    return f"No implementation for {type(content).__name__} to print it"


@render_content.register
def _(content: TextContent) -> str:
    return content.text


@render_content.register
def _(content: ImageContent) -> str:
    if content.caption:
        return f"[image] {content.url}: {content.caption}"
    return f"[image] {content.url}"


@render_content.register
def _(content: FileContent) -> str:
    return f"[file] {content.filename} ({content.size_bytes} bytes)"


class ContentPrinter:
    """Object wrapper around render_content for callers that inject a printer."""

    def print(self, content) -> str:
        return render_content(content)


def _name(registry: Optional[IdentityRegistry], user_id: str) -> str:
    user = registry.lookup_user(user_id) if registry else None
    return user.display_name if user else user_id


def format_private(message: PrivateMessage, registry: Optional[IdentityRegistry] = None) -> str:
    """Format a private message as ``'Sender' -> 'Receiver':<TAB> text``."""
    return "'%s' -> '%s':\t %s" % (
        _name(registry, message.sender_id),
        _name(registry, message.receiver_id),
        render_content(message.content),
    )


def format_group(message: GroupMessage, registry: Optional[IdentityRegistry] = None) -> str:
    """Format a group message as ``[Chat] 'Sender':<TAB> text``."""
    chat = registry.lookup_group_chat(message.chat_id) if registry else None
    return "[%s] '%s':\t %s" % (
        chat.name if chat else message.chat_id,
        _name(registry, message.sender_id),
        render_content(message.content),
    )


def format_message(message, registry: Optional[IdentityRegistry] = None) -> str:
    if message.is_group_message:
        return format_group(message, registry)
    return format_private(message, registry)
