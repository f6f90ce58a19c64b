"""Base Pydantic model with strict defaults for azconfig schemas.

All configuration schemas inherit from this base so the payload, environment,
rate-limit and final configs share the same validation behavior.
"""

from pydantic import BaseModel, ConfigDict


class AzconfigBaseModel(BaseModel):
    """Base model for all azconfig configuration schemas.

    - Validates assignments after initialization
    - Stores enum values rather than enum members
    - Strips whitespace from every string field
    - Accepts both field names and aliases on input
    """

    model_config = ConfigDict(
        extra='forbid',            # Reject unknown fields
        validate_assignment=True,  # Validate on field mutation
        use_enum_values=True,      # Convert enums to values
        str_strip_whitespace=True, # Strip whitespace from strings
        populate_by_name=True,     # Accept snake_case names as well as aliases
    )
