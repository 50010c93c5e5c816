"""k1s0 variants library."""

from .conditions import (
    MOD_RANGE,
    RANDOM,
    ConditionSpec,
    ConditionTypeRegistry,
    context_hash,
    mod_range_condition,
    random_condition,
)
from .defaults import default_registry
from .exceptions import (
    DuplicateConditionTypeError,
    InvalidOperatorError,
    InvalidVariantError,
    MalformedConfigError,
    UnknownConditionTypeError,
    UnknownFlagError,
    VariantsError,
    VariantsErrorCodes,
)
from .loader import parse_config_data, read_config_file
from .models import Condition, ConditionEvaluator, Flag, Mod, Variant, VariantOperator
from .notifier import REGISTRY_DID_CHANGE, ChangeHandler, ChangeNotifier
from .records import ConditionRecord, ConfigRecord, FlagRecord, ModRecord, VariantRecord
from .registry import OverridePolicy, Registry, RegistryConfig

__all__ = [
    "MOD_RANGE",
    "RANDOM",
    "REGISTRY_DID_CHANGE",
    "ChangeHandler",
    "ChangeNotifier",
    "Condition",
    "ConditionEvaluator",
    "ConditionRecord",
    "ConditionSpec",
    "ConditionTypeRegistry",
    "ConfigRecord",
    "DuplicateConditionTypeError",
    "Flag",
    "FlagRecord",
    "InvalidOperatorError",
    "InvalidVariantError",
    "MalformedConfigError",
    "Mod",
    "ModRecord",
    "OverridePolicy",
    "Registry",
    "RegistryConfig",
    "UnknownConditionTypeError",
    "UnknownFlagError",
    "Variant",
    "VariantOperator",
    "VariantRecord",
    "VariantsError",
    "VariantsErrorCodes",
    "context_hash",
    "default_registry",
    "mod_range_condition",
    "parse_config_data",
    "random_condition",
    "read_config_file",
]
