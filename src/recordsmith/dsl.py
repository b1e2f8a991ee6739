"""
Record Definition Language.

Pydantic models validating declarative record definitions (e.g. YAML) and
the loader that materializes them. A definition file holds a single record or
a list of records; bases refer to records defined earlier in the same input
and factories are dotted import paths.

Example::

    - name: Point
      frozen: true
      fields:
        - {name: x, type: float, default: 0.0}
        - {name: y, type: float, default: 0.0}
    - name: Path
      fields:
        - {name: points, type: list, default_factory: builtins.list}
"""

import importlib
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from recordsmith.builder import FieldDeclaration, RecordBuilder, field
from recordsmith.config import RecordConfig
from recordsmith.enums import FieldKind
from recordsmith.errors import ConfigurationError
from recordsmith.utils.console import log_info


class FieldDef(BaseModel):
  """
  Definition of a single field.
  """

  model_config = ConfigDict(extra="forbid")

  name: str = Field(..., description="Field name.")
  type: Optional[str] = Field(None, description="Type tag (kept as text, never interpreted).")
  kind: FieldKind = Field(FieldKind.INSTANCE, description="instance, class_var or init_var.")
  default: Any = Field(None, description="Literal default. Only used when present in the input.")
  default_factory: Optional[str] = Field(None, description="Dotted path of a zero-argument factory.")
  init: bool = True
  repr: bool = True
  compare: bool = True
  hash: Optional[bool] = None
  metadata: Dict[str, Any] = Field(default_factory=dict)

  @property
  def has_default(self) -> bool:
    return "default" in self.model_fields_set


class RecordDef(BaseModel):
  """
  Definition of one record type. Unset options fall back to the configuration.
  """

  model_config = ConfigDict(extra="forbid")

  name: str = Field(..., description="Record type name.")
  doc: Optional[str] = Field(None, description="Class docstring.")
  bases: List[str] = Field(default_factory=list, description="Names of previously defined records.")
  fields: List[FieldDef] = Field(default_factory=list)

  init: Optional[bool] = None
  repr: Optional[bool] = None
  compare: Optional[bool] = None
  hash: Optional[bool] = None
  frozen: Optional[bool] = None

  def option_overrides(self) -> Dict[str, Any]:
    """
    Maps the options set in the input onto `GenerationOptions` names.

    Returns:
        Dict[str, Any]: Only the options explicitly present in the definition.
    """
    mapping = {
      "init": "generate_init",
      "repr": "generate_repr",
      "compare": "generate_compare",
      "hash": "generate_hash",
      "frozen": "frozen",
    }
    return {target: getattr(self, key) for key, target in mapping.items() if key in self.model_fields_set}


def resolve_factory(path: str) -> Callable[[], Any]:
  """
  Imports a factory from a dotted path such as ``"collections.OrderedDict"``.

  Args:
      path (str): Module path followed by the attribute path.

  Returns:
      Callable: The resolved callable.

  Raises:
      ConfigurationError: If nothing importable and callable is found.
  """
  parts = path.split(".")
  for split in range(len(parts) - 1, 0, -1):
    module_name = ".".join(parts[:split])
    try:
      target: Any = importlib.import_module(module_name)
    except ImportError:
      continue
    try:
      for attr in parts[split:]:
        target = getattr(target, attr)
    except AttributeError as e:
      raise ConfigurationError(f"Cannot resolve factory '{path}': {e}") from e
    if not callable(target):
      raise ConfigurationError(f"Factory '{path}' is not callable")
    return target
  raise ConfigurationError(f"Cannot import factory '{path}'")


def parse_definitions(data: Any) -> List[RecordDef]:
  """
  Validates already-decoded data (a mapping or a list of mappings).

  Raises:
      ConfigurationError: If the data does not match the schema.
  """
  items = data if isinstance(data, list) else [data]
  try:
    return [RecordDef.model_validate(item) for item in items]
  except ValidationError as e:
    raise ConfigurationError(f"Invalid record definition: {e}") from e


def load_definitions(source: Union[str, Path]) -> List[RecordDef]:
  """
  Loads record definitions from YAML.

  Args:
      source (Union[str, Path]): A path to a YAML file, or YAML text.

  Returns:
      List[RecordDef]: The validated definitions, in input order.

  Raises:
      ConfigurationError: If the YAML is malformed or invalid.
  """
  text = source.read_text(encoding="utf-8") if isinstance(source, Path) else source
  try:
    data = yaml.safe_load(text)
  except yaml.YAMLError as e:
    raise ConfigurationError(f"Malformed record definition YAML: {e}") from e
  if data is None:
    return []
  return parse_definitions(data)


def _declaration(fdef: FieldDef) -> FieldDeclaration:
  kwargs: Dict[str, Any] = {
    "init": fdef.init,
    "repr": fdef.repr,
    "compare": fdef.compare,
    "hash": fdef.hash,
    "kind": fdef.kind,
    "metadata": fdef.metadata,
  }
  if fdef.has_default:
    kwargs["default"] = fdef.default
  if fdef.default_factory:
    kwargs["default_factory"] = resolve_factory(fdef.default_factory)
  return field(fdef.name, fdef.type, **kwargs)


def materialize_definitions(
  definitions: List[RecordDef],
  config: Optional[RecordConfig] = None,
  module: Optional[str] = None,
) -> Dict[str, type]:
  """
  Builds the classes for a list of definitions, in order.

  Args:
      definitions (List[RecordDef]): Validated definitions.
      config (Optional[RecordConfig]): Source of default options.
      module (Optional[str]): Value for ``__module__`` of the created classes.
          Defaults to the calling module.

  Returns:
      Dict[str, type]: Classes keyed by record name.

  Raises:
      ConfigurationError: On unknown bases, duplicate names or invalid declarations.
  """
  if module is None:
    module = sys._getframe(1).f_globals.get("__name__", "__main__")

  created: Dict[str, type] = {}
  for rdef in definitions:
    if rdef.name in created:
      raise ConfigurationError(f"Record '{rdef.name}' is defined twice")
    try:
      bases = [created[name] for name in rdef.bases]
    except KeyError as e:
      raise ConfigurationError(f"{rdef.name}: unknown base record {e.args[0]!r}") from e

    builder = RecordBuilder(rdef.name, bases=bases, config=config).option(**rdef.option_overrides())
    builder.declare(*(_declaration(fdef) for fdef in rdef.fields))

    namespace: Dict[str, Any] = {"__module__": module}
    if rdef.doc:
      namespace["__doc__"] = rdef.doc
    created[rdef.name] = builder.build_type(namespace)

  log_info(f"Materialized {len(created)} record(s): {', '.join(created)}")
  return created


def load_records(
  source: Union[str, Path], config: Optional[RecordConfig] = None, module: Optional[str] = None
) -> Dict[str, type]:
  """Loads YAML definitions and materializes them in the calling module (unless `module` is given)."""
  if module is None:
    module = sys._getframe(1).f_globals.get("__name__", "__main__")
  return materialize_definitions(load_definitions(source), config=config, module=module)
