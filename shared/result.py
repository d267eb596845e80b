"""Result values for operations whose failure callers may choose to ignore."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar


T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True, slots=True)
class Result(Generic[T, E]):
    """Either a success value or the exception that prevented it."""

    value: Optional[T] = None
    error: Optional[E] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(value=value)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        return cls(error=error)

    @classmethod
    def capture(
        cls, operation: Callable[[], T], *errors: type[BaseException]
    ) -> "Result[T, E]":
        """Run ``operation`` and wrap any of ``errors`` instead of raising."""

        try:
            return cls.ok(operation())
        except errors as exc:  # type: ignore[misc]
            return cls.err(exc)  # type: ignore[arg-type]

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        if self.error is not None:
            return default
        return self.value  # type: ignore[return-value]


__all__ = ["Result"]
