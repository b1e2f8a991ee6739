"""
Runtime Configuration Store.

Holds the project-wide defaults for record generation options and logging,
loaded from the ``[tool.recordsmith]`` table of the nearest ``pyproject.toml``
and overridable per call.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from recordsmith.errors import ConfigurationError
from recordsmith.schema import GenerationOptions
from recordsmith.utils.console import set_log_level

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class RecordConfig(BaseModel):
  """
  Global configuration container for record generation.
  """

  init: bool = Field(True, description="Default for generate_init.")
  repr: bool = Field(True, description="Default for generate_repr.")
  compare: bool = Field(True, description="Default for generate_compare.")
  hash: Optional[bool] = Field(None, description="Default for generate_hash (None derives it).")
  frozen: bool = Field(False, description="Default for frozen.")

  log_level: str = Field("WARNING", description="Level for the 'recordsmith' logger.")
  log_generated_source: bool = Field(False, description="If True, generated source is logged at debug level.")

  @field_validator("log_level")
  @classmethod
  def validate_log_level(cls, v: str) -> str:
    """
    Normalizes and checks the logging level name.

    Args:
        v (str): Raw level name.

    Returns:
        str: Upper-cased level name.

    Raises:
        ValueError: If the level is not a standard logging level.
    """
    v_clean = v.upper().strip()
    if v_clean not in _LOG_LEVELS:
      raise ValueError(f"Unknown log level: '{v}'. Supported levels: {sorted(_LOG_LEVELS)}")
    return v_clean

  def default_options(self) -> GenerationOptions:
    """
    Builds the generation options implied by this configuration.

    Returns:
        GenerationOptions: Options used when a record does not specify its own.
    """
    return GenerationOptions(
      generate_init=self.init,
      generate_repr=self.repr,
      generate_compare=self.compare,
      generate_hash=self.hash,
      frozen=self.frozen,
    )

  def apply_logging(self) -> None:
    """Sets the package logger to ``log_level``."""
    set_log_level(self.log_level)

  @classmethod
  def load(cls, search_path: Optional[Path] = None, **overrides: Any) -> "RecordConfig":
    """
    Loads configuration from pyproject.toml and applies keyword overrides.

    Overrides whose value is None are ignored, so callers can forward optional
    arguments unchanged. The resulting log level is applied to the package
    logger.

    Args:
        search_path (Optional[Path]): Directory to start searching for TOML config.
        **overrides: Field values that win over the TOML settings.

    Returns:
        RecordConfig: The fully resolved configuration object.

    Raises:
        ConfigurationError: If the TOML table contains unknown keys or invalid values.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    unknown = set(toml_config) - set(cls.model_fields)
    if unknown:
      raise ConfigurationError(f"Unknown [tool.recordsmith] keys: {sorted(unknown)}")

    final: Dict[str, Any] = dict(toml_config)
    for key, value in overrides.items():
      if value is not None:
        final[key] = value

    try:
      config = cls(**final)
    except ValueError as e:
      raise ConfigurationError(f"Invalid recordsmith configuration: {e}") from e

    config.apply_logging()
    return config


def _load_toml_settings(start_path: Union[str, Path]) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches the start directory and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Union[str, Path]): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = Path(start_path).resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Malformed {toml_path}: {e}") from e

      tool_section = data.get("tool", {})
      return tool_section.get("recordsmith", {}), parent

  return {}, None
