"""Flag, mod, condition and variant value types."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from .exceptions import InvalidOperatorError, InvalidVariantError, MalformedConfigError
from .records import FlagRecord, ModRecord, VariantRecord, validate_record

if TYPE_CHECKING:
    from .conditions import ConditionTypeRegistry

logger = structlog.stdlib.get_logger(__name__)

ConditionEvaluator = Callable[[Any], bool]


def _require_name(value: object, what: str) -> None:
    if not isinstance(value, str) or not value:
        raise MalformedConfigError(f"{what} must be a non-empty string, got {value!r}")


class VariantOperator(StrEnum):
    """Operator used to combine a variant's conditions."""

    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class Flag:
    """Named value whose base value may be overridden by active variants."""

    name: str
    description: str = ""
    base_value: Any = None

    def __post_init__(self) -> None:
        _require_name(self.name, "Flag name")

    @classmethod
    def from_record(cls, record: FlagRecord) -> Flag:
        return cls(
            name=record.name,
            description=record.description,
            base_value=record.base_value,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Flag:
        return cls.from_record(validate_record(FlagRecord, data))


@dataclass(frozen=True)
class Mod:
    """Override applied to the flag named flag_name while its variant is active."""

    flag_name: str
    value: Any = None

    def __post_init__(self) -> None:
        _require_name(self.flag_name, "Mod flag name")

    @classmethod
    def from_record(cls, record: ModRecord) -> Mod:
        return cls(flag_name=record.flag_name, value=record.value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Mod:
        return cls.from_record(validate_record(ModRecord, data))


@dataclass(frozen=True)
class Condition:
    """Predicate deciding whether the owning variant is active.

    type is the condition-type identifier the evaluator was built from, or
    an empty string for hand-built conditions.
    """

    evaluator: ConditionEvaluator
    type: str = ""

    def __post_init__(self) -> None:
        if not callable(self.evaluator):
            raise MalformedConfigError(
                f"Condition evaluator must be callable, got {type(self.evaluator).__name__}"
            )

    def evaluate(self, context: Any = None) -> bool:
        """Run the evaluator; an evaluator that raises counts as not met."""
        try:
            return bool(self.evaluator(context))
        except Exception as e:
            logger.warning(
                "condition evaluator failed",
                condition_type=self.type or None,
                error=str(e),
            )
            return False


@dataclass(frozen=True)
class Variant:
    """Conditions plus the mods that take effect while they hold.

    conditions and mods keep their given order. With several mods for the
    same flag, the first one listed is the one value_for_flag returns.
    """

    identifier: str
    operator: VariantOperator
    conditions: Sequence[Condition]
    mods: Sequence[Mod]

    def __post_init__(self) -> None:
        _require_name(self.identifier, "Variant identifier")
        try:
            operator = VariantOperator(self.operator)
        except ValueError as e:
            raise InvalidOperatorError(self.identifier, self.operator) from e
        conditions = tuple(self.conditions)
        mods = tuple(self.mods)
        for condition in conditions:
            if not isinstance(condition, Condition):
                raise MalformedConfigError(
                    f"Variant {self.identifier}: expected Condition, got {type(condition).__name__}"
                )
        for mod in mods:
            if not isinstance(mod, Mod):
                raise MalformedConfigError(
                    f"Variant {self.identifier}: expected Mod, got {type(mod).__name__}"
                )
        if not mods:
            raise InvalidVariantError(self.identifier, "at least one mod is required")
        object.__setattr__(self, "operator", operator)
        object.__setattr__(self, "conditions", conditions)
        object.__setattr__(self, "mods", mods)

    @classmethod
    def from_record(
        cls, record: VariantRecord, condition_types: ConditionTypeRegistry
    ) -> Variant:
        """Build a variant, resolving each condition through condition_types."""
        return cls(
            identifier=record.identifier,
            operator=record.operator,
            conditions=[
                condition_types.create(c.type, c.params) for c in record.conditions
            ],
            mods=[Mod.from_record(m) for m in record.mods],
        )

    def evaluate(self, context: Any = None) -> bool:
        """Whether this variant is active for context.

        A variant without conditions is always active.
        """
        if not self.conditions:
            return True
        if self.operator is VariantOperator.AND:
            return all(c.evaluate(context) for c in self.conditions)
        return any(c.evaluate(context) for c in self.conditions)

    def has_mod_for(self, name: str) -> bool:
        return any(m.flag_name == name for m in self.mods)

    def value_for_flag(self, name: str, default: Any = None) -> Any:
        """Value of the first mod targeting name, or default if none does."""
        for mod in self.mods:
            if mod.flag_name == name:
                return mod.value
        return default

    @property
    def flag_names(self) -> frozenset[str]:
        return frozenset(m.flag_name for m in self.mods)
