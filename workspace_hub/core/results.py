"""
Lookup Results

Every directory and membership lookup returns exactly one of:

- Found(value): the row exists
- NotFound(): the row does not exist (a normal outcome, not an error)
- TransientError(detail): the backend could not answer; retryable

Callers branch on the variant with isinstance(). NotFound is the only
variant that may turn into a denial.
"""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class TransientError:
    detail: str = "backend unavailable"


LookupResult = Union[Found[T], NotFound, TransientError]
