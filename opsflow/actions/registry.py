"""Action registry - the process-wide name -> action mapping."""

from typing import Optional
import logging

from .base import Action

logger = logging.getLogger(__name__)


class ActionRegistry:
    """
    Central registry for pipeline actions.

    Built once at startup with explicit ``register`` calls, then frozen.
    The runner only reads from it.
    """

    def __init__(self):
        self._actions: dict[str, Action] = {}
        self._frozen = False

    def register(self, action: Action) -> None:
        """
        Register an action.

        Args:
            action: The action to register

        Raises:
            ValueError: If the action has no name or the name is taken
            RuntimeError: If the registry has been frozen
        """
        if self._frozen:
            raise RuntimeError(f"Cannot register '{action.name}': registry is frozen")

        if not action.name:
            raise ValueError(f"Action {action.__class__.__name__} has no name")

        if action.name in self._actions:
            raise ValueError(f"Action '{action.name}' is already registered")

        self._actions[action.name] = action
        logger.info(f"Registered action: {action.name}")

    def freeze(self) -> "ActionRegistry":
        """Refuse further registrations."""
        self._frozen = True
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[Action]:
        """
        Get an action by name.

        Returns:
            The action, or None if not registered
        """
        return self._actions.get(name)

    def has(self, name: str) -> bool:
        return name in self._actions

    def names(self) -> list[str]:
        """Names of all registered actions."""
        return list(self._actions.keys())

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    def __iter__(self):
        return iter(self._actions.values())
