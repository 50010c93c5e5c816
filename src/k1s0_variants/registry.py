"""Registry: owns flags, condition types and variants, and resolves flag values."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any

import structlog

from .conditions import ConditionSpec, ConditionTypeRegistry
from .exceptions import MalformedConfigError, UnknownFlagError, VariantsError
from .loader import parse_config_data, read_config_file
from .models import Flag, Variant
from .notifier import ChangeHandler, ChangeNotifier
from .records import ConfigRecord, validate_record

logger = structlog.stdlib.get_logger(__name__)


class OverridePolicy(StrEnum):
    """Which active variant wins when several override the same flag."""

    LAST_MATCH = "LAST_MATCH"
    FIRST_MATCH = "FIRST_MATCH"


@dataclass
class RegistryConfig:
    """Registry behaviour settings."""

    override_policy: OverridePolicy = OverridePolicy.LAST_MATCH
    warn_on_dangling_mods: bool = True

    def __post_init__(self) -> None:
        self.override_policy = OverridePolicy(self.override_policy)


@dataclass(frozen=True)
class _Snapshot:
    flags: Mapping[str, Flag]
    variants: tuple[Variant, ...]


_EMPTY_SNAPSHOT = _Snapshot(flags=MappingProxyType({}), variants=())


class Registry:
    """Resolves flag values against the currently loaded variants.

    Flags and variants are replaced together by load_config*. Readers use
    whichever snapshot was current when they started, so a concurrent load
    is never observed half-applied.

    Change handlers are called by the notifier after the write lock is
    released. The default ChangeNotifier delivers inline, which blocks
    load_config until every handler returns; pass
    ChangeNotifier(executor=...) for fire-and-forget delivery.
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        *,
        condition_types: ConditionTypeRegistry | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._config = config or RegistryConfig()
        self._condition_types = condition_types or ConditionTypeRegistry()
        self._notifier = notifier or ChangeNotifier()
        self._snapshot = _EMPTY_SNAPSHOT
        self._write_lock = threading.Lock()

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def condition_types(self) -> ConditionTypeRegistry:
        return self._condition_types

    @property
    def flags(self) -> Mapping[str, Flag]:
        return self._snapshot.flags

    @property
    def variants(self) -> tuple[Variant, ...]:
        return self._snapshot.variants

    def get_flag(self, name: str) -> Flag:
        flag = self._snapshot.flags.get(name)
        if flag is None:
            raise UnknownFlagError(name)
        return flag

    def get_variant(self, identifier: str) -> Variant | None:
        for variant in self._snapshot.variants:
            if variant.identifier == identifier:
                return variant
        return None

    # -- resolution --------------------------------------------------------

    def flag_value(self, name: str, context: Any = None) -> Any:
        """Return the effective value of flag name for context.

        Only variants carrying a mod for name are evaluated, in registration
        order. The winner among the active ones follows the configured
        OverridePolicy; with no winner the flag's base value is returned.

        Raises:
            UnknownFlagError: no flag named name is loaded
        """
        snapshot = self._snapshot
        flag = snapshot.flags.get(name)
        if flag is None:
            raise UnknownFlagError(name)
        candidates = (
            v for v in snapshot.variants if v.has_mod_for(name) and v.evaluate(context)
        )
        return self._select(candidates, flag)

    def flag_values(self, context: Any = None) -> dict[str, Any]:
        """Resolve every flag, evaluating each variant once for context."""
        snapshot = self._snapshot
        active = [v for v in snapshot.variants if v.evaluate(context)]
        return {
            name: self._select((v for v in active if v.has_mod_for(name)), flag)
            for name, flag in snapshot.flags.items()
        }

    def active_variants(self, context: Any = None) -> list[str]:
        """Identifiers of the variants active for context, in order."""
        return [v.identifier for v in self._snapshot.variants if v.evaluate(context)]

    def _select(self, candidates: Iterable[Variant], flag: Flag) -> Any:
        winner: Variant | None = None
        for variant in candidates:
            winner = variant
            if self._config.override_policy is OverridePolicy.FIRST_MATCH:
                break
        if winner is None:
            return flag.base_value
        return winner.value_for_flag(flag.name)

    # -- mutation ----------------------------------------------------------

    def register_condition_type(self, identifier: str, spec: ConditionSpec) -> None:
        """Register a custom condition type.

        Raises:
            DuplicateConditionTypeError: identifier is already registered
        """
        with self._write_lock:
            self._condition_types.register(identifier, spec)

    def load_config(self, record: Mapping[str, Any] | ConfigRecord) -> None:
        """Replace all flags and variants with those described by record.

        On any error the previously loaded configuration stays in place and
        no change is published.

        Raises:
            MalformedConfigError: record has the wrong shape or duplicate keys
            UnknownConditionTypeError: a condition names an unregistered type
            InvalidOperatorError: a variant operator is not AND or OR
            InvalidVariantError: a variant has no mods
        """
        with self._write_lock:
            try:
                snapshot = self._build_snapshot(validate_record(ConfigRecord, record))
            except VariantsError as e:
                logger.warning("registry config rejected", code=e.code, error=str(e))
                raise
            self._snapshot = snapshot
        logger.info(
            "registry config loaded",
            flags=len(snapshot.flags),
            variants=len(snapshot.variants),
        )
        self._notifier.publish(self)

    def load_config_from_data(self, data: bytes | bytearray | str) -> None:
        """Load a JSON or YAML payload. See load_config."""
        self.load_config(parse_config_data(data))

    def load_config_file(self, path: Path | str) -> None:
        """Load a JSON or YAML file. See load_config."""
        self.load_config(read_config_file(path))

    def _build_snapshot(self, record: ConfigRecord) -> _Snapshot:
        flags: dict[str, Flag] = {}
        for flag_record in record.flags:
            if flag_record.name in flags:
                raise MalformedConfigError(f"Duplicate flag name: {flag_record.name}")
            flags[flag_record.name] = Flag.from_record(flag_record)

        variants: list[Variant] = []
        seen: set[str] = set()
        for variant_record in record.variants:
            if variant_record.identifier in seen:
                raise MalformedConfigError(
                    f"Duplicate variant identifier: {variant_record.identifier}"
                )
            seen.add(variant_record.identifier)
            variants.append(Variant.from_record(variant_record, self._condition_types))

        if self._config.warn_on_dangling_mods:
            for variant in variants:
                for flag_name in sorted(variant.flag_names - flags.keys()):
                    logger.warning(
                        "mod targets unknown flag",
                        variant=variant.identifier,
                        flag=flag_name,
                    )

        return _Snapshot(flags=MappingProxyType(flags), variants=tuple(variants))

    # -- observers ---------------------------------------------------------

    def subscribe(self, handler: ChangeHandler) -> None:
        """Call handler with this registry after every successful load."""
        self._notifier.subscribe(handler)

    def unsubscribe(self, handler: ChangeHandler) -> bool:
        return self._notifier.unsubscribe(handler)
