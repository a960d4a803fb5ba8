"""Outcome of one monitor check: the check's output, or the exception that stopped it."""

from dataclasses import dataclass
from typing import Generic, TypeVar

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


@dataclass(frozen=True)
class Result(Generic[ValueT, ErrorT]):
    """
    A check either produced findings (possibly an empty list) or failed.

    The monitor keeps going after a failed check and reports the error alongside the
    findings of the checks that succeeded.
    """

    value: ValueT | None = None
    error: ErrorT | None = None

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> ValueT:
        """The check's output; re-raises the failure for a failed check."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def unwrap_err(self) -> ErrorT:
        if self.error is None:
            raise ValueError(f"check succeeded, no error to unwrap: {self.value!r}")
        return self.error
