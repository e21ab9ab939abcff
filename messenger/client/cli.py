import re
import shlex
from typing import List, Optional
import typer
from ..core.facade import Messenger
from ..core.errors import MessengerError
from ..core.printer import format_group, format_private, format_message

app = typer.Typer(help="In-process messenger console")

# A leading @name or #name, optionally quoted, followed by free message text
_TARGET_RE = re.compile(r'^([#@]"[^"]*"|\S+)\s*(.*)$', re.S)

HELP_TEXT = ("Commands:\n"
             "  /user <name>                  register (if needed) and act as <name>\n"
             "  /users\n"
             "  /dm @<name> <message>\n"
             "  /history [@<name>]\n"
             "  /create-group #<name> [@<member> ...]\n"
             "  /add #<name> @<user>\n"
             "  /remove #<name> @<user>\n"
             "  /group #<name> <message>\n"
             "  /group-history #<name>\n"
             "  /members #<name>\n"
             "  /groups\n"
             "  /search <word> [<word> ...]   messages containing all words\n"
             "  /search-any <word> [...]      messages containing any word\n"
             "  /help\n"
             "  /quit")


class Console:
    """Slash-command interpreter over an in-process Messenger.

    Users are addressed as ``@name`` and group chats as ``#name``. Every
    command prints its outcome with typer.echo; domain errors are reported
    and the session continues.
    """

    def __init__(self, messenger: Optional[Messenger] = None):
        self.messenger = messenger or Messenger()
        self.current_user_id: Optional[str] = None

    def _user_id(self, ref: str) -> Optional[str]:
        user = self.messenger.registry.find_by_display_name(ref.lstrip("@"))
        if user is None:
            typer.echo(f"[warn] No user named {ref.lstrip('@')}")
            return None
        return user.id

    def _chat_id(self, ref: str) -> Optional[str]:
        chat = self.messenger.registry.find_group_chat_by_name(ref.lstrip("#"))
        if chat is None:
            typer.echo(f"[warn] No group chat named {ref.lstrip('#')}")
            return None
        return chat.id

    def _args(self, rest: str) -> Optional[List[str]]:
        """Split command arguments, honouring quotes (#"Old friends")."""
        try:
            return shlex.split(rest)
        except ValueError as e:
            typer.echo(f"[warn] Could not parse arguments: {e}")
            return None

    def _target(self, rest: str):
        """Split '#"Old friends" hi there' into ('#Old friends', 'hi there')."""
        match = _TARGET_RE.match(rest)
        if not match:
            return "", ""
        return match.group(1).replace('"', ""), match.group(2)

    def _require_login(self) -> bool:
        if self.current_user_id is None:
            typer.echo("[warn] Pick a user first with /user <name>")
            return False
        return True

    def handle(self, line: str) -> bool:
        """Execute one input line.

        Returns:
            bool: False when the session should end, True otherwise
        """
        line = line.strip()
        if not line:
            return True
        cmd, _, rest = line.partition(" ")
        rest = rest.strip()
        if cmd == "/quit":
            return False
        try:
            self._dispatch(cmd, rest)
        except MessengerError as e:
            typer.echo(f"[error] {e}")
        return True

    def _dispatch(self, cmd: str, rest: str):
        m = self.messenger
        if cmd == "/help":
            typer.echo(HELP_TEXT)

        elif cmd == "/user" and rest:
            user = m.registry.find_by_display_name(rest)
            if user is None:
                self.current_user_id = m.create_user(rest)
                typer.echo(f"Registered as {rest} ({self.current_user_id})")
            else:
                self.current_user_id = user.id
                typer.echo(f"Acting as {rest} ({user.id})")

        elif cmd == "/users":
            for user in m.users():
                typer.echo(f"{user.display_name} ({user.id})")

        elif cmd == "/dm":
            if not self._require_login():
                return
            target, text = self._target(rest)
            if not target.startswith("@") or not text.strip():
                typer.echo("Usage: /dm @<name> <message>")
                return
            receiver_id = self._user_id(target)
            if receiver_id:
                msg = m.send_private_text(self.current_user_id, receiver_id, text.strip())
                typer.echo(f"[sent #{msg.seq}]")

        elif cmd == "/history":
            if not self._require_login():
                return
            other_id = None
            if rest:
                other_id = self._user_id(rest)
                if other_id is None:
                    return
            for msg in m.get_private_history(self.current_user_id, other_id):
                typer.echo(format_private(msg, m.registry))

        elif cmd == "/create-group" and rest.startswith("#"):
            parts = self._args(rest)
            if not parts:
                return
            member_ids = []
            for ref in parts[1:]:
                user_id = self._user_id(ref)
                if user_id is None:
                    return
                member_ids.append(user_id)
            if self.current_user_id:
                member_ids.append(self.current_user_id)
            chat_id = m.create_group_chat(parts[0].lstrip("#"), member_ids)
            typer.echo(f"Created group chat {parts[0]} ({chat_id})")

        elif cmd in ("/add", "/remove"):
            parts = self._args(rest)
            if parts is None:
                return
            if len(parts) != 2:
                typer.echo(f"Usage: {cmd} #<name> @<user>")
                return
            chat_id, user_id = self._chat_id(parts[0]), self._user_id(parts[1])
            if chat_id is None or user_id is None:
                return
            if cmd == "/add":
                changed = m.add_member(chat_id, user_id)
                typer.echo(f"Added {parts[1]} to {parts[0]}" if changed else f"{parts[1]} is already in {parts[0]}")
            else:
                changed = m.remove_member(chat_id, user_id)
                typer.echo(f"Removed {parts[1]} from {parts[0]}" if changed else f"{parts[1]} is not in {parts[0]}")

        elif cmd == "/group":
            if not self._require_login():
                return
            target, text = self._target(rest)
            if not target.startswith("#") or not text.strip():
                typer.echo("Usage: /group #<name> <message>")
                return
            chat_id = self._chat_id(target)
            if chat_id:
                msg = m.send_group_text(self.current_user_id, chat_id, text.strip())
                typer.echo(f"[sent #{msg.seq}]")

        elif cmd == "/group-history" and rest:
            parts = self._args(rest)
            chat_id = self._chat_id(parts[0]) if parts else None
            if chat_id:
                for msg in m.get_group_history(chat_id):
                    typer.echo(format_group(msg, m.registry))

        elif cmd == "/members" and rest:
            parts = self._args(rest)
            chat_id = self._chat_id(parts[0]) if parts else None
            if chat_id:
                typer.echo(", ".join(m.member_names(chat_id)))

        elif cmd == "/groups":
            chats = m.chats_for_user(self.current_user_id) if self.current_user_id else m.group_chats()
            for chat in chats:
                typer.echo(f"#{chat.name} ({len(chat.member_ids)} members)")

        elif cmd in ("/search", "/search-any"):
            results = m.search_messages(rest.split(), match_any=(cmd == "/search-any"))
            if not results:
                typer.echo("No messages found")
            for msg in results:
                typer.echo(format_message(msg, m.registry))

        else:
            typer.echo('Type "/help" for commands.')


def run_demo(messenger: Messenger) -> List[str]:
    """Populate a messenger with the sample conversations and describe it.

    Returns:
        List[str]: Display lines, in the order they should be printed
    """
    lines = []
    max_id = messenger.create_user("Max")
    ratsoa_id = messenger.create_user("Ratsoa")
    messenger.send_private_text(max_id, ratsoa_id, "Hi, Ratsoa")
    messenger.send_private_text(ratsoa_id, max_id, "Hi, Max :)")
    messenger.send_private_text(ratsoa_id, max_id, "How are you?")
    for msg in messenger.get_private_history(max_id):
        lines.append(format_private(msg, messenger.registry))

    alex_id = messenger.create_user("Alex")
    viktor_id = messenger.create_user("Victor")
    karl_id = messenger.create_user("Karl")
    chat_id = messenger.create_group_chat("Old friends", {alex_id, viktor_id, karl_id})
    kate_id = messenger.create_user("Kate")
    messenger.add_member(chat_id, kate_id)

    messenger.send_group_text(alex_id, chat_id, "Hello everyone")
    messenger.send_group_text(kate_id, chat_id, "Hi Alex, hello Karl!")
    messenger.send_group_text(karl_id, chat_id, "Hello Kate, welcome")
    for msg in messenger.get_group_history(chat_id):
        lines.append(format_group(msg, messenger.registry))
    lines.append("Members: " + ", ".join(messenger.member_names(chat_id)))

    lines.append("Search 'hello karl':")
    for msg in messenger.search_messages(["hello", "karl"]):
        lines.append("  " + format_message(msg, messenger.registry))
    return lines


@app.command("demo")
def demo_cmd():
    """Run the sample conversations and print histories, members and a search."""
    for line in run_demo(Messenger()):
        typer.echo(line)


@app.command("run")
def run_cmd(name: str = typer.Option("", help="Display name to act as from the start")):
    """
    Run an interactive messenger session.

    Args:
        name: Display name to register (or reuse) before the prompt starts
    """
    console = Console()
    if name:
        console.handle(f"/user {name}")
    typer.echo('Type "/help" for commands.')
    while True:
        try:
            line = input("")
        except EOFError:
            break
        if not console.handle(line):
            break

if __name__ == "__main__":
    app()
