"""
CommandRegistry - Explicit command registration pattern

Bounded Context: Command registration and validation
Responsibilities:
  - Register commands with handlers
  - Validate command existence before execution
  - Provide introspection (available_commands, get_help)

Threading: Thread-safe (uses lock for write operations)
Pattern: Registry with explicit registration
"""

import threading
from typing import Any, Callable, Dict, Optional, Set


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandRegistry:
    """
    Registry for MQTT commands with explicit registration.

    Handlers receive the full command payload (dict) when one is given and
    may return a JSON-serializable result, which the control plane publishes
    as the command reply.

    Example:
        registry = CommandRegistry()
        registry.register('end_commute', handler.end_commute, "End the active commute")

        try:
            result = registry.execute('end_commute', {'command': 'end_commute', 'save': True})
        except CommandNotAvailableError as e:
            print(f"Command not available: {e}")
    """

    def __init__(self):
        self._commands: Dict[str, Callable[..., Any]] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, command: str, handler: Callable[..., Any], description: str) -> None:
        """
        Register a command with its handler function.

        Args:
            command: Command name (lowercase, no spaces)
            handler: Callable that executes the command
            description: Human-readable description for help text

        Raises:
            ValueError: If command already registered or name invalid
        """
        if not command or command != command.lower() or ' ' in command:
            raise ValueError(f"Invalid command name {command!r}: use lowercase without spaces")

        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")

            self._commands[command] = handler
            self._descriptions[command] = description

    def unregister(self, command: str) -> None:
        with self._lock:
            self._commands.pop(command, None)
            self._descriptions.pop(command, None)

    def execute(self, command: str, command_data: Optional[dict] = None) -> Any:
        """
        Execute a registered command.

        Args:
            command: Command name to execute
            command_data: Optional command data (full JSON payload)

        Returns:
            Whatever the handler returns

        Raises:
            CommandNotAvailableError: If command not registered
        """
        handler = self._commands.get(command)
        if handler is None:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        if command_data is not None:
            return handler(command_data)
        return handler()

    def is_available(self, command: str) -> bool:
        return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of all registered command names."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Command descriptions (snapshot)."""
        return dict(self._descriptions)

    def count(self) -> int:
        return len(self._commands)
