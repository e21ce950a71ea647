"""Best-effort side effects run after a primary write has committed."""

import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class PostCommitHooks:
    """Ordered list of callbacks run once the primary write succeeded.

    Each hook is isolated: a failure is logged and the remaining hooks still run.
    Nothing here can undo the write that preceded it.
    """

    def __init__(self):
        self._hooks: List[Tuple[str, Callable[[], None]]] = []

    def add(self, name: str, hook: Callable[[], None]) -> None:
        self._hooks.append((name, hook))

    def __len__(self) -> int:
        return len(self._hooks)

    def run(self) -> int:
        """Run all hooks in order; returns how many failed."""
        failures = 0
        for name, hook in self._hooks:
            try:
                hook()
            except Exception as e:
                failures += 1
                logger.warning(f"Post-commit hook '{name}' failed: {type(e).__name__}: {str(e)}")
        self._hooks.clear()
        return failures
