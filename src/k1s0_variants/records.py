"""Configuration record models (pydantic BaseModel)."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import MalformedConfigError


class FlagRecord(BaseModel):
    """Flag definition."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, validation_alias=AliasChoices("name", "flag"))
    description: str = ""
    base_value: Any = Field(
        default=None, validation_alias=AliasChoices("base_value", "baseValue")
    )

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> Any:
        return "" if value is None else value


class ConditionRecord(BaseModel):
    """Condition reference: a registered type plus its parameters."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1)
    params: Any = Field(
        default=None, validation_alias=AliasChoices("params", "value", "values")
    )


class ModRecord(BaseModel):
    """Flag override carried by a variant."""

    model_config = ConfigDict(frozen=True)

    flag_name: str = Field(
        min_length=1, validation_alias=AliasChoices("flag_name", "flagName", "flag")
    )
    value: Any = None


class VariantRecord(BaseModel):
    """Variant definition.

    operator and mods are checked when the Variant is built so that their
    failures surface as InvalidOperatorError / InvalidVariantError.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(
        min_length=1, validation_alias=AliasChoices("identifier", "id")
    )
    operator: Any = "AND"
    conditions: list[ConditionRecord] = Field(default_factory=list)
    mods: list[ModRecord] = Field(default_factory=list)


class ConfigRecord(BaseModel):
    """Whole configuration payload."""

    model_config = ConfigDict(frozen=True)

    flags: list[FlagRecord] = Field(
        default_factory=list, validation_alias=AliasChoices("flags", "flag_defs")
    )
    variants: list[VariantRecord] = Field(default_factory=list)


_RecordT = TypeVar("_RecordT", bound=BaseModel)


def validate_record(model: type[_RecordT], data: Any) -> _RecordT:
    """Validate data against model, raising MalformedConfigError on failure."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedConfigError(
            f"{model.__name__} validation failed: {e}",
            cause=e,
        ) from e
