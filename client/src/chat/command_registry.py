"""
Command registry for legacy slash commands.

The server still understands a handful of plain-text commands such as
``/join Lobby`` or ``/login alice secret``. They are sent as raw text,
space separated, so arguments must be single words.
"""

from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass


@dataclass
class CommandInfo:
    """Information about a registered command."""
    name: str
    params: Tuple[str, ...]
    description: str

    @property
    def usage(self) -> str:
        return " ".join([f"/{self.name}"] + [f"<{param}>" for param in self.params])


class CommandRegistry:
    """Registry for legacy slash commands.

    Commands are registered with a name (without the leading slash), the
    names of their positional parameters, and a description.

    Example:
        registry = create_default_registry()
        registry.build("join", "Lobby")        # "/join Lobby"
        registry.parse("/login alice secret")  # ("login", ["alice", "secret"])
    """

    def __init__(self):
        self._commands: Dict[str, CommandInfo] = {}

    def register(self, name: str, params: Sequence[str] = (), description: str = "") -> None:
        """Register a command.

        Args:
            name: Command name without leading slash (e.g., "join")
            params: Positional parameter names, in order
            description: Human-readable description for help text
        """
        self._commands[name.lower()] = CommandInfo(
            name=name.lower(),
            params=tuple(params),
            description=description
        )

    def build(self, name: str, *args: str) -> str:
        """Build the raw text for a command.

        Raises:
            ValueError: if the command is unknown, the argument count is
                wrong, or an argument is empty or contains whitespace
        """
        cmd = self._commands.get(name.lower())
        if cmd is None:
            raise ValueError(f"Unknown command: /{name}")

        if len(args) != len(cmd.params):
            raise ValueError(f"Usage: {cmd.usage}")

        for param, value in zip(cmd.params, args):
            value = str(value)
            if not value:
                raise ValueError(f"/{cmd.name}: {param} must not be empty")
            if any(ch.isspace() for ch in value):
                raise ValueError(f"/{cmd.name}: {param} must not contain whitespace")

        return " ".join([f"/{cmd.name}"] + [str(value) for value in args])

    def parse(self, text: str) -> Optional[Tuple[str, List[str]]]:
        """Split typed input into a known command name and its arguments.

        Returns:
            (name, args) for a registered command, None otherwise
        """
        if not text.startswith("/"):
            return None

        parts = text[1:].split()
        if not parts:
            return None

        command_name = parts[0].lower()
        if command_name not in self._commands:
            return None

        return command_name, parts[1:]

    def get_commands(self) -> List[Tuple[str, str]]:
        """Get list of all registered commands with descriptions.

        Returns:
            List of (usage, description) tuples
        """
        return [
            (cmd.usage, cmd.description)
            for cmd in self._commands.values()
        ]

    def is_command(self, text: str) -> bool:
        """Check if text starts with a known command."""
        return self.parse(text) is not None


def create_default_registry() -> CommandRegistry:
    """Registry with the commands the room server understands."""
    registry = CommandRegistry()
    registry.register("join", ("room",), "Join a room")
    registry.register("login", ("username", "password"), "Log in")
    registry.register("register", ("username", "email", "password"), "Create an account")
    registry.register("check_email", ("email",), "Check whether an email is registered")
    registry.register("check_username", ("username",), "Check whether a username is taken")
    return registry
