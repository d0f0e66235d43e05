"""
Outcome value objects shared by every layer.

``Result`` is the success flag plus ordered error list returned by mutating
operations. ``Maybe`` is the presence/absence wrapper returned by lookups;
absence is a normal outcome, not a failure.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Optional, Tuple, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class ArchiError:
    """A business error with a stable code and a displayable description."""
    code: str
    description: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("Error code must be a non-empty string")

    def __str__(self) -> str:
        return f"{self.code}: {self.description}"


class Result:
    """
    Outcome of an operation that can fail for business reasons.

    A successful result never carries errors. Results combine with ``&``:
    the combination succeeds only if both operands succeed and its errors
    are the concatenation of both error lists, left operand first.
    """

    __slots__ = ("_succeeded", "_errors")

    def __init__(self, succeeded: bool, errors: Iterable[ArchiError] = ()):
        errors = tuple(errors)
        if succeeded and errors:
            raise ValueError("A successful result cannot carry errors")
        self._succeeded = bool(succeeded)
        self._errors = errors

    @classmethod
    def success(cls) -> "Result":
        return cls(True)

    @classmethod
    def failed(cls, *errors: ArchiError) -> "Result":
        return cls(False, errors)

    @classmethod
    def combine(cls, results: Iterable["Result"]) -> "Result":
        """Fold results with logical AND, keeping every error in order."""
        combined = cls.success()
        for result in results:
            combined = combined & result
        return combined

    @property
    def succeeded(self) -> bool:
        return self._succeeded

    @property
    def errors(self) -> Tuple[ArchiError, ...]:
        return self._errors

    @property
    def error_codes(self) -> Tuple[str, ...]:
        return tuple(error.code for error in self._errors)

    def __and__(self, other: "Result") -> "Result":
        if not isinstance(other, Result):
            return NotImplemented
        return Result(self._succeeded and other._succeeded, self._errors + other._errors)

    def __bool__(self) -> bool:
        return self._succeeded

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._succeeded == other._succeeded and self._errors == other._errors

    def __hash__(self) -> int:
        return hash((self._succeeded, self._errors))

    def __repr__(self) -> str:
        if self._succeeded:
            return "Result.success()"
        return f"Result.failed({', '.join(repr(e) for e in self._errors)})"


class Maybe(Generic[T]):
    """
    Two-state optional value.

    ``value`` may only be read after checking ``has_value``; reading it from
    an empty Maybe raises ``ValueError``.
    """

    __slots__ = ("_has_value", "_value")

    def __init__(self, has_value: bool, value: Optional[T] = None):
        self._has_value = has_value
        self._value = value

    @classmethod
    def just(cls, value: T) -> "Maybe[T]":
        if value is None:
            raise ValueError("Maybe.just() requires a value, use Maybe.nothing()")
        return cls(True, value)

    @classmethod
    def nothing(cls) -> "Maybe[T]":
        return cls(False)

    @classmethod
    def from_optional(cls, value: Optional[T]) -> "Maybe[T]":
        return cls.nothing() if value is None else cls.just(value)

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def value(self) -> T:
        if not self._has_value:
            raise ValueError("Maybe has no value")
        return self._value

    def or_else(self, default: U) -> Union[T, U]:
        return self._value if self._has_value else default

    def map(self, func: Callable[[T], U]) -> "Maybe[U]":
        if not self._has_value:
            return Maybe.nothing()
        return Maybe.from_optional(func(self._value))

    def __bool__(self) -> bool:
        return self._has_value

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Maybe):
            return NotImplemented
        return self._has_value == other._has_value and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._has_value, self._value))

    def __repr__(self) -> str:
        if self._has_value:
            return f"Maybe.just({self._value!r})"
        return "Maybe.nothing()"
