"""Condition types: factories turning configuration parameters into evaluators."""

from __future__ import annotations

import hashlib
import random
import threading
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import structlog

from .exceptions import (
    DuplicateConditionTypeError,
    MalformedConfigError,
    UnknownConditionTypeError,
    VariantsError,
)
from .models import Condition, ConditionEvaluator

logger = structlog.stdlib.get_logger(__name__)

ConditionSpec = Callable[[Any], ConditionEvaluator]

RANDOM = "RANDOM"
MOD_RANGE = "MOD_RANGE"


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def random_condition(params: Any) -> ConditionEvaluator:
    """RANDOM: active with probability params, re-drawn on every evaluation."""
    if not isinstance(params, (int, float)) or isinstance(params, bool):
        raise MalformedConfigError(f"RANDOM expects a probability, got {params!r}")
    probability = float(params)
    if not 0.0 <= probability <= 1.0:
        raise MalformedConfigError(f"RANDOM probability must be in [0, 1], got {probability}")

    def evaluate(context: Any) -> bool:
        return random.random() < probability

    return evaluate


def _mod_range_params(params: Any) -> tuple[int, int, int, Any]:
    key = None
    if isinstance(params, Mapping):
        mod = params.get("mod", params.get("range"))
        start = params.get("start")
        end = params.get("end")
        key = params.get("key")
    elif isinstance(params, Sequence) and not isinstance(params, (str, bytes)):
        if len(params) != 3:
            raise MalformedConfigError(f"MOD_RANGE expects [mod, start, end], got {params!r}")
        mod, start, end = params
    else:
        raise MalformedConfigError(f"MOD_RANGE expects a mapping or [mod, start, end], got {params!r}")

    if not (_is_int(mod) and _is_int(start) and _is_int(end)):
        raise MalformedConfigError(f"MOD_RANGE mod, start and end must be integers: {params!r}")
    if mod <= 0:
        raise MalformedConfigError(f"MOD_RANGE mod must be positive, got {mod}")
    if not 0 <= start <= end <= mod:
        raise MalformedConfigError(
            f"MOD_RANGE bucket [{start}, {end}) must lie within [0, {mod}]"
        )
    return mod, start, end, key


def _canonical(value: Any) -> str | None:
    """Process-independent text for value, or None for unsupported types."""
    if isinstance(value, bool):
        return f"bool:{value}"
    if isinstance(value, int):
        return f"int:{value}"
    if isinstance(value, float):
        return f"float:{value!r}"
    if isinstance(value, str):
        return f"str:{value}"
    if isinstance(value, bytes):
        return f"bytes:{value.hex()}"
    if isinstance(value, (tuple, frozenset)):
        parts = [_canonical(item) for item in value]
        if any(part is None for part in parts):
            return None
        if isinstance(value, frozenset):
            # set iteration order depends on PYTHONHASHSEED
            return "frozenset:{" + ",".join(sorted(parts)) + "}"  # type: ignore[arg-type]
        return "tuple:(" + ",".join(parts) + ")"  # type: ignore[arg-type]
    return None


def context_hash(value: Any) -> int | None:
    """Stable non-negative integer for value, or None if it cannot be bucketed.

    Integers contribute their absolute value. Strings, bytes, floats, bools
    and tuples or frozensets of those go through SHA-256 over a canonical
    encoding, so the result is the same in every process. Anything else,
    including objects whose str() carries a memory address, is not bucketed.
    """
    if value is None:
        return None
    if _is_int(value):
        return abs(value)
    canonical = _canonical(value)
    if canonical is None:
        return None
    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def mod_range_condition(params: Any) -> ConditionEvaluator:
    """MOD_RANGE: active when hash(context) % mod falls in [start, end).

    With a key parameter the bucket is taken from context[key] of a mapping
    context. Missing contexts and values context_hash cannot encode are
    never active.
    """
    mod, start, end, key = _mod_range_params(params)

    def evaluate(context: Any) -> bool:
        value = context
        if key is not None:
            if not isinstance(context, Mapping):
                return False
            value = context.get(key)
        hashed = context_hash(value)
        if hashed is None:
            return False
        return start <= hashed % mod < end

    return evaluate


class ConditionTypeRegistry:
    """Identifier-keyed table of condition specs.

    RANDOM and MOD_RANGE are always registered and cannot be replaced.
    """

    def __init__(self) -> None:
        self._specs: dict[str, ConditionSpec] = {
            RANDOM: random_condition,
            MOD_RANGE: mod_range_condition,
        }
        self._lock = threading.Lock()

    def register(self, identifier: str, spec: ConditionSpec) -> None:
        """Register spec under identifier.

        Raises:
            DuplicateConditionTypeError: identifier is already registered
            MalformedConfigError: identifier is empty or spec is not callable
        """
        if not isinstance(identifier, str) or not identifier:
            raise MalformedConfigError(
                f"Condition type identifier must be a non-empty string, got {identifier!r}"
            )
        if not callable(spec):
            raise MalformedConfigError(f"Condition spec for {identifier} must be callable")
        with self._lock:
            if identifier in self._specs:
                raise DuplicateConditionTypeError(identifier)
            self._specs[identifier] = spec
        logger.debug("condition type registered", condition_type=identifier)

    def get(self, identifier: str) -> ConditionSpec:
        spec = self._specs.get(identifier)
        if spec is None:
            raise UnknownConditionTypeError(identifier)
        return spec

    def create(self, identifier: str, params: Any = None) -> Condition:
        """Build a Condition of type identifier from params."""
        spec = self.get(identifier)
        try:
            evaluator = spec(params)
        except VariantsError:
            raise
        except Exception as e:
            raise MalformedConfigError(
                f"Condition type {identifier} rejected params {params!r}: {e}",
                cause=e,
            ) from e
        if not callable(evaluator):
            raise MalformedConfigError(
                f"Condition type {identifier} returned a non-callable evaluator"
            )
        return Condition(evaluator=evaluator, type=identifier)

    def identifiers(self) -> list[str]:
        with self._lock:
            return list(self._specs)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._specs

    def __len__(self) -> int:
        return len(self._specs)
