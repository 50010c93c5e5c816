"""Exception types for the variants library."""

from __future__ import annotations


class VariantsErrorCodes:
    """Error code constants for VariantsError."""

    MALFORMED_CONFIG: str = "MALFORMED_CONFIG"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE: str = "PARSE_ERROR"
    DUPLICATE_CONDITION_TYPE: str = "DUPLICATE_CONDITION_TYPE"
    UNKNOWN_CONDITION_TYPE: str = "UNKNOWN_CONDITION_TYPE"
    INVALID_OPERATOR: str = "INVALID_OPERATOR"
    INVALID_VARIANT: str = "INVALID_VARIANT"
    UNKNOWN_FLAG: str = "UNKNOWN_FLAG"


class VariantsError(Exception):
    """Base error for the variants library."""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class MalformedConfigError(VariantsError):
    """Configuration record is missing fields or has the wrong shape."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        *,
        code: str = VariantsErrorCodes.MALFORMED_CONFIG,
    ) -> None:
        super().__init__(code, message, cause)


class DuplicateConditionTypeError(VariantsError):
    """Condition type identifier is already registered."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            VariantsErrorCodes.DUPLICATE_CONDITION_TYPE,
            f"Condition type already registered: {identifier}",
        )
        self.identifier = identifier


class UnknownConditionTypeError(VariantsError):
    """Condition references an unregistered condition type."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            VariantsErrorCodes.UNKNOWN_CONDITION_TYPE,
            f"Unknown condition type: {identifier}",
        )
        self.identifier = identifier


class InvalidOperatorError(VariantsError):
    """Variant operator is neither AND nor OR."""

    def __init__(self, identifier: str, operator: object) -> None:
        super().__init__(
            VariantsErrorCodes.INVALID_OPERATOR,
            f"Invalid operator for variant {identifier}: {operator!r}",
        )
        self.operator = operator


class InvalidVariantError(VariantsError):
    """Variant violates a structural invariant (e.g. has no mods)."""

    def __init__(self, identifier: str, message: str) -> None:
        super().__init__(
            VariantsErrorCodes.INVALID_VARIANT,
            f"Invalid variant {identifier}: {message}",
        )
        self.identifier = identifier


class UnknownFlagError(VariantsError):
    """No flag with the requested name is loaded."""

    def __init__(self, name: str) -> None:
        super().__init__(VariantsErrorCodes.UNKNOWN_FLAG, f"Unknown flag: {name}")
        self.name = name
