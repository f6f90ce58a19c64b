"""Error hierarchy for configuration resolution.

Every stage of the resolution pipeline fails fast with one of these
exceptions. None of them is retried and no partial configuration is ever
returned: a caller that sees a ``ConfigurationError`` has no usable config.

Key distinction:
- MalformedValue: a single environment string could not be coerced
- MalformedPayload: the structured JSON payload could not be decoded
- ConflictingIdentity: both identity-delegation flags were set
- ValidationFailed: a required field is missing or contradictory
- ProviderFailure: an external provider (file, metadata service) failed
"""


class ConfigurationError(ValueError):
    """Base class for all configuration resolution failures."""
    pass


class MalformedValue(ConfigurationError):
    """Raised when a raw string cannot be coerced to its target type.

    Parameters
    ----------
    key : str
        Name of the variable or field the value came from.
    raw : str
        The offending raw string.
    expected : str
        Name of the target type ("bool", "int", "float", ...).
    """

    def __init__(self, key: str, raw: str, expected: str):
        self.key = key
        self.raw = raw
        self.expected = expected
        super().__init__(f"failed to parse {key} {raw!r} as {expected}")


class MalformedPayload(ConfigurationError):
    """Raised when the structured config payload cannot be deserialized."""
    pass


class ConflictingIdentity(ConfigurationError):
    """Raised when managed and workload identity are both enabled."""

    def __init__(self):
        super().__init__(
            "you can not combine both managed identity and workload identity "
            "as an authentication mechanism"
        )


class ValidationFailed(ConfigurationError):
    """Raised when a validation rule is violated.

    Parameters
    ----------
    field : str
        Name of the missing or conflicting field.
    message : str
        Human readable explanation.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class ProviderFailure(ConfigurationError):
    """Raised when an external provider fails.

    Parameters
    ----------
    origin : str
        Which provider failed ("deployment-parameters", "instance-metadata").
    message : str
        Description of the failure.
    """

    def __init__(self, origin: str, message: str):
        self.origin = origin
        super().__init__(f"{origin}: {message}")


def require(condition: bool, field: str, message: str) -> None:
    """Enforce a single validation rule.

    Raises
    ------
    ValidationFailed
        If ``condition`` is False.

    Examples
    --------
    >>> require(cfg.resource_group != "", "resource_group", "resource group not set")
    """
    if not condition:
        raise ValidationFailed(field, message)
