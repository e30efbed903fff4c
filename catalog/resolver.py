"""Resilient lookup resolver.

Catalog endpoints rarely have one reliable way to find a record: an artist
id may be a UUID or a Spotify id, releases may hang off a join table, a
denormalised ``artist_id`` column or a stored function, and some rows can
only be found by name. ``resolve`` takes an identifier and an ordered chain
of ``Strategy`` objects and:

1. runs the strategies one at a time, in the order given;
2. stops at the first one that produces a non-empty result;
3. records a ``StrategyAttempt`` for every strategy it ran, including the
   ones that raised or timed out, which never abort the resolution.

The returned ``ResolutionOutcome`` says which strategy matched (if any) and
what was tried, so handlers can report it in their response metadata and
decide whether to substitute a fallback payload.
"""

import asyncio
import inspect
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .logger import get_logger

logger = get_logger(__name__)

MATCHED = "matched"
EMPTY = "empty"
FAILED = "failed"
TIMEOUT = "timeout"

MANY = "many"
ONE = "one"

_ERROR_LIMIT = 300


class InvalidIdentifier(ValueError):
    """The identifier to resolve is missing or blank."""


class _RaisedTimeout(Exception):
    """A ``TimeoutError`` raised by the strategy itself, not by its budget."""


@dataclass
class ResolutionContext:
    """Per-request values shared with every strategy in a chain."""

    store: Any = None
    rest: Any = None
    limit: Optional[int] = None
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Strategy:
    """A named lookup method.

    ``func(identifier, context)`` may be a plain function (run in a worker
    thread) or a coroutine function. ``cardinality`` says how its return
    value is judged: ``"many"`` strategies return a collection that is empty
    when it has no items, ``"one"`` strategies return a single entity that
    is empty when it is ``None``.
    """

    name: str
    func: Callable[..., Any]
    cardinality: str = MANY
    timeout: Optional[float] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Strategy name must be non-empty")
        if self.cardinality not in (MANY, ONE):
            raise ValueError(f"Unknown strategy cardinality: {self.cardinality!r}")

    def normalise(self, value: Any) -> List[Any]:
        if value is None:
            return []
        if self.cardinality == ONE:
            return [value]
        if isinstance(value, (Mapping, str, bytes)):
            raise TypeError(
                f"strategy '{self.name}' returned a {type(value).__name__}, expected a collection"
            )
        return value if isinstance(value, list) else list(value)


@dataclass
class StrategyAttempt:
    name: str
    status: str
    count: int = 0
    error: Optional[str] = None
    elapsed_ms: int = field(default=0, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "count": self.count,
            "error": self.error,
        }


@dataclass
class ResolutionOutcome:
    identifier: str
    results: List[Any] = field(default_factory=list)
    matched_strategy: Optional[str] = None
    attempted: List[StrategyAttempt] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.matched_strategy is not None

    @property
    def attempted_names(self) -> List[str]:
        return [a.name for a in self.attempted]

    @property
    def errors(self) -> List[str]:
        return [f"{a.name}: {a.error}" for a in self.attempted if a.error]

    @property
    def first(self) -> Any:
        return self.results[0] if self.results else None

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "matched_strategy": self.matched_strategy,
            "attempted": [a.to_dict() for a in self.attempted],
        }


def validate_identifier(identifier: Any) -> str:
    """Return the stripped identifier or raise ``InvalidIdentifier``."""
    if not isinstance(identifier, str) or not identifier.strip():
        raise InvalidIdentifier("Identifier is required")
    return identifier.strip()


def _describe(exc: BaseException) -> str:
    message = str(exc) or type(exc).__name__
    return f"{type(exc).__name__}: {message}"[:_ERROR_LIMIT]


async def _invoke(strategy: Strategy, identifier: str, context: Optional[ResolutionContext]) -> Any:
    try:
        if inspect.iscoroutinefunction(strategy.func):
            return await strategy.func(identifier, context)
        value = await asyncio.to_thread(strategy.func, identifier, context)
        if inspect.isawaitable(value):
            value = await value
        return value
    except (asyncio.TimeoutError, TimeoutError) as exc:
        # socket and driver timeouts are failures of the strategy
        raise _RaisedTimeout() from exc


async def resolve(
    identifier: str,
    strategies: Sequence[Strategy],
    context: Optional[ResolutionContext] = None,
    *,
    deadline: Optional[float] = None,
) -> ResolutionOutcome:
    """Run ``strategies`` in order until one returns a non-empty result.

    Args:
        identifier: Key to look up. Blank identifiers raise
            ``InvalidIdentifier`` before any strategy runs.
        strategies: Ordered chain; may be empty.
        context: Passed unchanged to every strategy.
        deadline: Optional budget in seconds for the whole resolution. When
            it runs out the in-flight strategy is recorded as ``timeout`` and
            the remaining ones are not attempted.

    Returns:
        A fresh ``ResolutionOutcome``. Strategy errors are recorded on it,
        never raised. Cancellation of the calling task propagates.
    """
    key = validate_identifier(identifier)
    outcome = ResolutionOutcome(identifier=key)
    loop = asyncio.get_running_loop()
    ends_at = loop.time() + deadline if deadline is not None else None

    for strategy in strategies:
        budget = strategy.timeout
        bound_by_deadline = False
        if ends_at is not None:
            remaining = ends_at - loop.time()
            if remaining <= 0:
                logger.warning("Deadline reached before '%s' for %s; stopping", strategy.name, key)
                break
            if budget is None or remaining < budget:
                budget = remaining
                bound_by_deadline = True

        started = time.perf_counter()
        try:
            if budget:
                value = await asyncio.wait_for(_invoke(strategy, key, context), budget)
            else:
                value = await _invoke(strategy, key, context)
            rows = strategy.normalise(value)
        except asyncio.TimeoutError:
            elapsed = int((time.perf_counter() - started) * 1000)
            message = f"timed out after {budget:.2f}s" if budget else "timed out"
            outcome.attempted.append(StrategyAttempt(strategy.name, TIMEOUT, error=message, elapsed_ms=elapsed))
            logger.warning("Strategy '%s' timed out for %s", strategy.name, key)
            if bound_by_deadline:
                break
            continue
        except Exception as exc:
            if isinstance(exc, _RaisedTimeout):
                exc = exc.__cause__
            elapsed = int((time.perf_counter() - started) * 1000)
            outcome.attempted.append(StrategyAttempt(strategy.name, FAILED, error=_describe(exc), elapsed_ms=elapsed))
            logger.warning("Strategy '%s' failed for %s: %s", strategy.name, key, _describe(exc))
            continue

        elapsed = int((time.perf_counter() - started) * 1000)
        if rows:
            outcome.attempted.append(StrategyAttempt(strategy.name, MATCHED, count=len(rows), elapsed_ms=elapsed))
            outcome.results = rows
            outcome.matched_strategy = strategy.name
            logger.info("Resolved %s via '%s' (%d results)", key, strategy.name, len(rows))
            return outcome

        outcome.attempted.append(StrategyAttempt(strategy.name, EMPTY, elapsed_ms=elapsed))
        logger.debug("Strategy '%s' found nothing for %s", strategy.name, key)

    if strategies:
        logger.info("No strategy resolved %s (tried %s)", key, ", ".join(outcome.attempted_names))
    return outcome


def resolve_sync(
    identifier: str,
    strategies: Sequence[Strategy],
    context: Optional[ResolutionContext] = None,
    *,
    deadline: Optional[float] = None,
) -> ResolutionOutcome:
    """Blocking wrapper around ``resolve`` for scripts and non-async callers."""
    return asyncio.run(resolve(identifier, strategies, context, deadline=deadline))
