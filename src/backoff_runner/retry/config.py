"""
Retry configuration and error-kind classification.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Union

from ..exceptions import NON_RETRYABLE, ConfigurationError

# An exception class (matched with isinstance) or a string tag (matched
# against the error's `kind` attribute).
ErrorKind = Union[type, str]

_OPTION_ALIASES = {
    "minDelay": "min_delay",
    "maxDelay": "max_delay",
    "maxAttempts": "max_attempts",
    "maxDuration": "max_duration",
    "useJitter": "use_jitter",
    "nonRetryableErrorKinds": "non_retryable",
}


def matches_kind(error: Any, kind: ErrorKind) -> bool:
    """Check whether a failure value belongs to the given error kind."""
    if isinstance(kind, type):
        return isinstance(error, kind)
    return getattr(error, "kind", None) == kind


def _normalize_kinds(kinds: Any) -> tuple:
    if kinds is None:
        return ()
    if isinstance(kinds, (str, type)):
        return (kinds,)
    if isinstance(kinds, Iterable):
        kinds = tuple(kinds)
        for kind in kinds:
            if not isinstance(kind, (str, type)):
                raise ConfigurationError(
                    f"Error kinds must be exception classes or string tags, got {kind!r}"
                )
        return kinds
    raise ConfigurationError(f"Invalid non_retryable value: {kinds!r}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class BackoffConfig:
    """
    Configuration for one retry session.

    All durations are in milliseconds.

    Attributes:
        min_delay: Delay before the first retry
        max_delay: Hard ceiling on any computed delay
        max_attempts: Total attempts allowed, including the first
        max_duration: Optional wall-clock budget measured from session start
        use_jitter: Scale each delay by a random factor in [1, 2)
        non_retryable: Error kinds that stop retrying immediately
    """

    min_delay: float
    max_delay: float
    max_attempts: int
    max_duration: float | None = None
    use_jitter: bool = False
    non_retryable: tuple = field(default=(NON_RETRYABLE,))

    def __post_init__(self):
        """Validate configuration."""
        if not isinstance(self.max_attempts, int) or isinstance(self.max_attempts, bool):
            raise ConfigurationError("max_attempts must be an integer")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be >= 1")
        if not _is_number(self.min_delay) or self.min_delay < 0:
            raise ConfigurationError("min_delay must be a number >= 0")
        if not _is_number(self.max_delay) or self.max_delay < self.min_delay:
            raise ConfigurationError("max_delay must be a number >= min_delay")
        if self.max_duration is not None and (
            not _is_number(self.max_duration) or self.max_duration < 0
        ):
            raise ConfigurationError("max_duration must be a number >= 0")
        object.__setattr__(self, "use_jitter", bool(self.use_jitter))
        object.__setattr__(self, "non_retryable", _normalize_kinds(self.non_retryable))

    def is_non_retryable(self, error: Any) -> bool:
        """Check if a failure must terminate the session without retrying."""
        # KeyboardInterrupt, SystemExit and cancellation always propagate.
        if isinstance(error, BaseException) and not isinstance(error, Exception):
            return True
        if getattr(error, "retryable", True) is False:
            return True
        return any(matches_kind(error, kind) for kind in self.non_retryable)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "BackoffConfig":
        """
        Build a configuration from a plain mapping of options.

        Accepts both snake_case field names and their camelCase aliases
        (``minDelay``, ``maxAttempts``, ``nonRetryableErrorKinds``, ...).

        Raises:
            ConfigurationError: On unknown or missing options
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown retry option: {key!r}")
            kwargs[name] = value

        missing = [name for name in ("min_delay", "max_delay", "max_attempts") if name not in kwargs]
        if missing:
            raise ConfigurationError(f"Missing required retry options: {', '.join(missing)}")
        return cls(**kwargs)

    @classmethod
    def aggressive(cls) -> "BackoffConfig":
        """Preset for aggressive retry (more attempts, longer delays)."""
        return cls(
            min_delay=2000,
            max_delay=120000,
            max_attempts=10,
            use_jitter=True,
        )

    @classmethod
    def conservative(cls) -> "BackoffConfig":
        """Preset for conservative retry (fewer attempts, shorter delays)."""
        return cls(
            min_delay=500,
            max_delay=10000,
            max_attempts=3,
        )

    @classmethod
    def no_retry(cls) -> "BackoffConfig":
        """Preset for no retry (single attempt only)."""
        return cls(min_delay=0, max_delay=0, max_attempts=1)
