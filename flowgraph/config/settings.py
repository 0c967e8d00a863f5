"""Configuration management."""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..classes.exceptions import ConfigurationError
from ..classes.flowpath import MainstemPolicy

logger = logging.getLogger(__name__)

# unit system -> packaged defaults resource
UNIT_RESOURCES = {
    "meter": "meter.json",
    "metre": "meter.json",
    "degree": "degree.json",
}


class FlowGraphSettings(BaseModel):
    """Settings for rank assignment and stream order computation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    channel_weight: float = Field(default=0.2, ge=0.0, le=1.0,
                                  description="Weight of channel width against deflection angle")
    mainstem_policy: MainstemPolicy = Field(default=MainstemPolicy.BASIC,
                                            description="How mainstems continue at confluences")
    coordinate_precision: int = Field(default=6, ge=0,
                                      description="Rounding digits used to match nexus coordinates")
    width_outside_tolerance: float = Field(default=0.1, ge=0.0, le=1.0,
                                           description="Largest share of a cross-section allowed outside the waterbody")
    acute_angle_degrees: float = Field(default=50.0, ge=0.0, le=90.0,
                                       description="Cross-sections meeting the channel below this angle are reported")


def _read_defaults(units: str) -> Dict[str, Any]:
    key = units.strip().lower()
    if key.endswith("s"):
        key = key[:-1]
    filename = UNIT_RESOURCES.get(key)
    if filename is None:
        raise ConfigurationError(f"Default properties do not exist for units of {units!r}; "
                                 f"supply a properties file instead")
    text = resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")
    return json.loads(text)


def load_settings(units: str = "meter", path: Optional[Union[str, Path]] = None,
                  **overrides) -> FlowGraphSettings:
    """
    Load settings from the packaged defaults or a JSON properties file.

    Args:
        units: Coordinate unit system selecting the packaged defaults
        path: Optional JSON file replacing the packaged defaults
        **overrides: Individual values taking precedence over both

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the units are unknown or a value is invalid
    """
    if path is not None:
        try:
            values = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read properties file {path}: {e}") from e
    else:
        values = _read_defaults(units)

    values.update({k: v for k, v in overrides.items() if v is not None})
    settings = validate_settings(values)
    logger.debug(f"Loaded settings: {settings}")
    return settings


def validate_settings(values: Union[FlowGraphSettings, Dict[str, Any], None]) -> FlowGraphSettings:
    """
    Validate a settings mapping.

    Raises:
        ConfigurationError: If any value is invalid
    """
    if values is None:
        return FlowGraphSettings()
    if isinstance(values, FlowGraphSettings):
        return values
    try:
        return FlowGraphSettings.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e


def parse_mainstem_policy(value: Union[MainstemPolicy, str]) -> MainstemPolicy:
    """Parse a mainstem policy name, raising ConfigurationError if unknown."""
    if isinstance(value, MainstemPolicy):
        return value
    try:
        return MainstemPolicy(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(f"Unknown mainstem policy {value!r}") from None
