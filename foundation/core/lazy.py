"""
Memoizing supplier for collaborators that are expensive or side-effecting to build.

A ``Lazy`` slot starts uninitialized. The first ``get()`` runs the builder and
keeps the result; later calls return the kept instance. A builder that raises
leaves the slot uninitialized, and so does a builder that returns ``None``
(an optional collaborator that is not configured), so the next ``get()``
simply tries again.

Slots are not thread-safe: a slot belongs to one coordinator, which belongs to
one request.
"""

from typing import Callable, Generic, Optional, TypeVar

from foundation.core.logging import get_logger

T = TypeVar("T")

logger = get_logger("foundation.lazy")


class Lazy(Generic[T]):
    """Builds a value on first access and caches it for the lifetime of the slot"""

    def __init__(self, builder: Callable[[], Optional[T]], name: Optional[str] = None):
        self._builder = builder
        self.name = name or getattr(builder, "__name__", "lazy")
        self._initialized = False
        self._value: Optional[T] = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def get(self) -> Optional[T]:
        """
        Return the cached instance, building it first if needed.

        Returns:
            The built instance, or ``None`` if the builder reported the
            collaborator as absent

        Raises:
            Whatever the builder raises; the failure is not remembered
        """
        if self._initialized:
            return self._value

        try:
            value = self._builder()
        except Exception as e:
            logger.warning(f"Failed to build {self.name}", component=self.name, exception=e)
            raise

        if value is None:
            logger.debug(f"{self.name} is not configured", component=self.name)
            return None

        self._value = value
        self._initialized = True
        logger.debug(f"Built {self.name}", component=self.name)
        return value

    __call__ = get

    def peek(self) -> Optional[T]:
        """Return the cached instance without building it"""
        return self._value if self._initialized else None

    def reset(self) -> None:
        """Forget the cached instance so the next access builds a new one"""
        self._value = None
        self._initialized = False

    def __repr__(self) -> str:
        state = "initialized" if self._initialized else "uninitialized"
        return f"<Lazy {self.name} {state}>"
