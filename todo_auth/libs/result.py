from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Category of a failure, used to pick the outward status once at the boundary"""

    validation = "validation"
    conflict = "conflict"
    invalid_credentials = "invalid_credentials"
    invalid_token = "invalid_token"
    not_found = "not_found"
    rate_limited = "rate_limited"
    unexpected = "unexpected"


@dataclass(frozen=True)
class Error:
    code: str
    message: str
    kind: ErrorKind = ErrorKind.unexpected
    details: Optional[Dict[str, List[str]]] = None


class Result(Generic[T]):
    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        self._value = value
        self._error = error

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._error is not None:
            raise ValueError(f"Result holds an error: {self._error.code}")
        return self._value

    @property
    def error(self) -> Error:
        if self._error is None:
            raise ValueError("Result holds a value")
        return self._error

    def __repr__(self) -> str:
        if self.is_err():
            return f"Result(error={self._error!r})"
        return f"Result(value={self._value!r})"


class Return:
    @staticmethod
    def ok(value: Optional[T] = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result:
        return Result(error=error)
