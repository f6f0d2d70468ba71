"""Abstract interface for transactional scopes spanning several stores."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any


class IUnitOfWork(ABC):
    """
    Atomic scope shared by every store call made inside it.

    Nested ``unit_of_work()`` calls join the outer scope; only the outermost
    one commits.
    """

    @abstractmethod
    def unit_of_work(self) -> AbstractAsyncContextManager[Any]:
        """Open (or join) a write transaction."""
        pass

    @abstractmethod
    def savepoint(self, name: str) -> AbstractAsyncContextManager[Any]:
        """Open a savepoint inside the active unit of work."""
        pass

    @abstractmethod
    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` after the outermost commit; dropped on rollback."""
        pass
