"""Named retry strategies and the registry that holds them."""

import enum
import random
import dataclasses
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from ..errors import ConfigurationError, StrategyNotFoundError


class OperationClass(enum.IntEnum):
    """Coarse operation buckets, ordered by how aggressive their recovery is."""

    ROUTINE = 1
    HEALTH = 2
    CRITICAL = 3


@dataclass(frozen=True)
class Strategy:
    """
    Immutable retry parameters for one family of operations.

    Delays are in seconds. ``jitter`` is the fraction of the computed delay that
    may be added at random (0 disables it). ``attempt_timeout`` and ``deadline``
    are optional; when both are set the per-attempt timeout must fit inside the
    deadline.
    """

    name: str
    operation_class: OperationClass
    max_attempts: int
    base_delay: float
    multiplier: float
    max_delay: float
    jitter: float = 0.0
    attempt_timeout: Optional[float] = None
    deadline: Optional[float] = None
    retryable_errors: Tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("strategy name cannot be empty")
        if not isinstance(self.operation_class, OperationClass):
            raise ConfigurationError(f"strategy '{self.name}': unknown operation class {self.operation_class!r}")
        if self.max_attempts < 1:
            raise ConfigurationError(f"strategy '{self.name}': max_attempts must be >= 1")
        if self.multiplier < 1:
            raise ConfigurationError(f"strategy '{self.name}': multiplier must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ConfigurationError(f"strategy '{self.name}': delays cannot be negative")
        if self.jitter < 0:
            raise ConfigurationError(f"strategy '{self.name}': jitter cannot be negative")
        for label, value in (("attempt_timeout", self.attempt_timeout), ("deadline", self.deadline)):
            if value is not None and value <= 0:
                raise ConfigurationError(f"strategy '{self.name}': {label} must be positive")
        if self.attempt_timeout is not None and self.deadline is not None and self.attempt_timeout > self.deadline:
            raise ConfigurationError(f"strategy '{self.name}': attempt_timeout exceeds deadline")
        object.__setattr__(self, "retryable_errors", tuple(m.lower() for m in self.retryable_errors))

    def backoff(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt, without jitter."""
        exponent = max(attempt - 1, 0)
        try:
            delay = self.base_delay * (self.multiplier ** exponent)
        except OverflowError:
            delay = self.max_delay
        return min(delay, self.max_delay)

    def delay_for(self, attempt: int, rng: Optional[Callable[[], float]] = None) -> float:
        delay = self.backoff(attempt)
        if self.jitter:
            delay += (rng or random.random)() * self.jitter * delay
        return delay

    def describe(self) -> dict:
        return {
            "name": self.name,
            "operation_class": self.operation_class.name.lower(),
            "description": self.description,
            "max_attempts": self.max_attempts,
            "base_delay": self.base_delay,
            "multiplier": self.multiplier,
            "max_delay": self.max_delay,
            "jitter": self.jitter,
            "attempt_timeout": self.attempt_timeout,
            "deadline": self.deadline,
            "retryable_errors": list(self.retryable_errors),
        }


# ============================================================================
# Defaults
# ============================================================================

_CONTEXT_MARKERS = (
    "context canceled",
    "context cancelled",
    "context deadline exceeded",
)

TOOL_OPERATION = Strategy(
    name="tool_operation",
    operation_class=OperationClass.ROUTINE,
    description="General tool operations with moderate retry",
    max_attempts=3,
    base_delay=0.5,
    multiplier=2.0,
    max_delay=5.0,
    jitter=0.25,
    attempt_timeout=30.0,
    deadline=90.0,
    retryable_errors=_CONTEXT_MARKERS + (
        "context timeout",
        "timeout",
        "timed out",
        "connection reset",
        "broken pipe",
        "target closed",
        "browser not started",
        "browser connection unhealthy",
        "websocket: close",
        "connection refused",
        "network unreachable",
        "no such host",
        "operation was canceled",
        "operation was cancelled",
        "stale element reference",
        "element not found",
        "element not interactable",
    ),
)

NETWORK_OPERATION = Strategy(
    name="network_operation",
    operation_class=OperationClass.ROUTINE,
    description="Network operations that may have intermittent failures",
    max_attempts=4,
    base_delay=1.0,
    multiplier=2.5,
    max_delay=10.0,
    jitter=0.25,
    attempt_timeout=30.0,
    deadline=120.0,
    retryable_errors=(
        "timeout",
        "timed out",
        "connection reset",
        "broken pipe",
        "connection refused",
        "network unreachable",
        "no such host",
        "temporary failure in name resolution",
        "no route to host",
    ),
)

BROWSER_OPERATION = Strategy(
    name="browser_operation",
    operation_class=OperationClass.HEALTH,
    description="Browser health operations requiring quick recovery",
    max_attempts=5,
    base_delay=0.25,
    multiplier=1.5,
    max_delay=3.0,
    jitter=0.25,
    attempt_timeout=15.0,
    deadline=60.0,
    retryable_errors=_CONTEXT_MARKERS + (
        "browser not started",
        "browser connection unhealthy",
        "connection reset",
        "broken pipe",
        "websocket: close",
        "connection refused",
    ),
)

CRITICAL_OPERATION = Strategy(
    name="critical_operation",
    operation_class=OperationClass.CRITICAL,
    description="Critical operations such as browser restart that should fail fast",
    max_attempts=2,
    base_delay=0.1,
    multiplier=2.0,
    max_delay=1.0,
    jitter=0.0,
    attempt_timeout=60.0,
    deadline=150.0,
    retryable_errors=_CONTEXT_MARKERS,
)

DEFAULT_STRATEGIES = (TOOL_OPERATION, NETWORK_OPERATION, BROWSER_OPERATION, CRITICAL_OPERATION)

DEFAULT_CLASS_STRATEGIES = {
    OperationClass.ROUTINE: TOOL_OPERATION.name,
    OperationClass.HEALTH: BROWSER_OPERATION.name,
    OperationClass.CRITICAL: CRITICAL_OPERATION.name,
}

# Fields that configuration may override, with their coercions.
OVERRIDABLE_FIELDS = {
    "max_attempts": int,
    "base_delay": float,
    "multiplier": float,
    "max_delay": float,
    "jitter": float,
    "attempt_timeout": float,
    "deadline": float,
}


# ============================================================================
# Registry
# ============================================================================

class StrategyRegistry:
    """
    Read-only set of named strategies plus the strategy assigned to each
    operation class.

    Built once and injected into the executor. All validation happens here, so
    a typo in a strategy name fails at construction instead of at call time.
    """

    def __init__(
        self,
        strategies: Iterable[Strategy] = DEFAULT_STRATEGIES,
        class_strategies: Optional[Mapping[OperationClass, str]] = None,
    ):
        table: Dict[str, Strategy] = {}
        for strategy in strategies:
            if strategy.name in table:
                raise ConfigurationError(f"duplicate strategy '{strategy.name}'")
            table[strategy.name] = strategy
        if not table:
            raise ConfigurationError("at least one strategy must be registered")

        if class_strategies is None:
            class_strategies = {
                cls: name for cls, name in DEFAULT_CLASS_STRATEGIES.items() if name in table
            }
        classes: Dict[OperationClass, str] = {}
        for cls, name in class_strategies.items():
            cls = OperationClass(cls)
            if name not in table:
                raise ConfigurationError(f"operation class {cls.name} refers to unknown strategy '{name}'")
            if table[name].operation_class != cls:
                raise ConfigurationError(
                    f"strategy '{name}' belongs to {table[name].operation_class.name}, not {cls.name}"
                )
            classes[cls] = name

        self._strategies = MappingProxyType(table)
        self._classes = MappingProxyType(classes)

    def get(self, name: str) -> Strategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise StrategyNotFoundError(name) from None

    def for_class(self, operation_class: OperationClass) -> Strategy:
        try:
            name = self._classes[operation_class]
        except KeyError:
            raise ConfigurationError(f"no strategy assigned to operation class {operation_class.name}") from None
        return self._strategies[name]

    def names(self) -> Tuple[str, ...]:
        return tuple(self._strategies)

    @property
    def strategies(self) -> Mapping[str, Strategy]:
        return self._strategies

    @property
    def class_strategies(self) -> Mapping[OperationClass, str]:
        return self._classes

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)

    def describe(self, name: str) -> dict:
        return self.get(name).describe()

    def describe_all(self) -> Dict[str, dict]:
        return {name: strategy.describe() for name, strategy in self._strategies.items()}

    def extended(self, *strategies: Strategy) -> "StrategyRegistry":
        """Return a new registry with additional strategies."""
        return StrategyRegistry(tuple(self._strategies.values()) + strategies, dict(self._classes))

    def with_overrides(self, overrides: Mapping[str, Mapping[str, object]]) -> "StrategyRegistry":
        """
        Return a new registry with some strategy parameters replaced.

        ``overrides`` maps strategy name -> {field: value}; unknown strategy names
        or fields raise ConfigurationError.
        """
        table = dict(self._strategies)
        for name, fields in overrides.items():
            strategy = self.get(name)
            changes = {}
            for field_name, value in fields.items():
                coerce = OVERRIDABLE_FIELDS.get(field_name)
                if coerce is None:
                    raise ConfigurationError(f"strategy '{name}': field '{field_name}' cannot be overridden")
                try:
                    changes[field_name] = None if value is None else coerce(value)
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(f"strategy '{name}': invalid {field_name} {value!r}") from e
            table[name] = dataclasses.replace(strategy, **changes)
        return StrategyRegistry(table.values(), dict(self._classes))


def default_registry(overrides: Optional[Mapping[str, Mapping[str, object]]] = None) -> StrategyRegistry:
    registry = StrategyRegistry()
    if overrides:
        registry = registry.with_overrides(overrides)
    return registry


__all__ = [
    "OperationClass",
    "Strategy",
    "StrategyRegistry",
    "TOOL_OPERATION",
    "NETWORK_OPERATION",
    "BROWSER_OPERATION",
    "CRITICAL_OPERATION",
    "DEFAULT_STRATEGIES",
    "DEFAULT_CLASS_STRATEGIES",
    "OVERRIDABLE_FIELDS",
    "default_registry",
]
