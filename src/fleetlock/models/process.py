"""Process matching pattern model."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import ConfigurationError

RECOGNIZED_PATTERN_KEYS = frozenset({"command_string", "user"})


class ProcessPattern(BaseModel):
    """Criteria used to find the process a gated action depends on.

    Attributes:
        command_string: Substring that must appear in the full command line.
        user: Name of the user owning the process.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    command_string: str | None = None
    user: str | None = None

    @field_validator("command_string", "user")
    @classmethod
    def reject_blank(cls, value: str | None) -> str | None:
        # an empty substring matches every command line
        if value is not None and not value.strip():
            raise ValueError("must not be blank")
        return value

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "ProcessPattern":
        """Build a pattern from caller-supplied options.

        Raises:
            ConfigurationError: If no options are given, any key is not
                one of RECOGNIZED_PATTERN_KEYS, or a value is blank.
        """
        if not options:
            raise ConfigurationError("Need a process pattern")
        unknown = set(options) - RECOGNIZED_PATTERN_KEYS
        if unknown:
            raise ConfigurationError(
                f"Only expect options: {sorted(RECOGNIZED_PATTERN_KEYS)} "
                f"but got {sorted(options)}"
            )
        try:
            pattern = cls.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid process pattern: {e}") from e
        if not pattern.as_options():
            raise ConfigurationError("Need a process pattern")
        return pattern

    def as_options(self) -> dict[str, str]:
        """Return only the criteria that were set."""
        return self.model_dump(exclude_none=True)
