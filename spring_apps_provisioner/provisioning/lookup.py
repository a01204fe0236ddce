"""Tagged lookup outcome and the get-or-create idiom built on it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from azure.core.exceptions import ResourceNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    """The remote resource exists."""

    resource: T


@dataclass(frozen=True)
class Absent:
    """The remote API reported that no resource exists under this name."""

    name: str


LookupResult = Union[Found[T], Absent]


def lookup(name: str, fetch: Callable[..., T], *args: Any, **kwargs: Any) -> LookupResult[T]:
    """Call ``fetch`` and map a not-found response to ``Absent``.

    Every other exception (authentication, quota, conflict, malformed
    request) propagates unchanged.
    """
    try:
        return Found(fetch(*args, **kwargs))
    except ResourceNotFoundError:
        logger.debug("%s not found", name)
        return Absent(name)


def get_or_create(outcome: LookupResult[T], create: Callable[[], T]) -> tuple[T, bool]:
    """Return ``(resource, created)``; ``create`` is called exactly once, and only on ``Absent``."""
    if isinstance(outcome, Found):
        return outcome.resource, False
    return create(), True
