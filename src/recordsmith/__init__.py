"""
recordsmith Package.

Generates record types (data-holding classes) from an explicit, ordered list
of field declarations. The field list is resolved once into an immutable
`RecordTypeDescriptor`, from which construction, representation, comparison,
hashing and the frozen mutation guard are synthesized.

Usage
-----

.. code-block:: python

    import recordsmith as rs

    Point = rs.record("Point", [
      rs.field("x", float, default=0.0),
      rs.field("y", float, default=0.0),
    ], frozen=True)

    p = Point(1.5)
    print(p)  # Point(x=1.5, y=0.0)

Builder API
^^^^^^^^^^^

.. code-block:: python

    from recordsmith import RecordBuilder

    Inventory = (
      RecordBuilder("Inventory")
      .field("name", str)
      .field("items", list, default_factory=list)
      .build_type()
    )
"""

import sys
from typing import Any, Iterable, Mapping, Optional, Sequence

from recordsmith.builder import MISSING, FieldDeclaration, RecordBuilder, build_descriptor, field
from recordsmith.compiler import RecordBehaviors, RecordCompiler, compile_behaviors, materialize
from recordsmith.config import RecordConfig
from recordsmith.enums import DefaultKind, FieldKind, HashAction
from recordsmith.errors import ConfigurationError, FrozenInstanceError, RecordError
from recordsmith.helpers import asdict, astuple, descriptor_of, fields, is_record, replace
from recordsmith.schema import (
  FactoryDefault,
  FieldSpec,
  GenerationOptions,
  LiteralDefault,
  NoDefault,
  RecordTypeDescriptor,
)

__version__ = "0.1.0"


def record(
  name: str,
  declarations: Iterable[Any] = (),
  *,
  bases: Sequence[type] = (),
  namespace: Optional[Mapping[str, Any]] = None,
  options: Optional[GenerationOptions] = None,
  config: Optional[RecordConfig] = None,
  module: Optional[str] = None,
  **option_overrides: Any,
) -> type:
  """
  Creates a record class in one call.

  Args:
      name (str): Class name.
      declarations (Iterable): Field declarations: names, ``(name, type)``,
          ``(name, type, field(...))`` tuples or `field()` results.
      bases (Sequence[type]): Base classes (record or plain).
      namespace (Optional[Mapping]): Extra class attributes, e.g. ``__post_init__``.
      options (Optional[GenerationOptions]): Full option set. Defaults to the
          configuration's options.
      config (Optional[RecordConfig]): Source of default options and logging flags.
      module (Optional[str]): ``__module__`` of the class. Defaults to the caller's module.
      **option_overrides: Individual options, e.g. ``frozen=True`` or ``generate_hash=False``.

  Returns:
      type: The new record class.

  Raises:
      ConfigurationError: If the declarations or options are invalid.
  """
  builder = RecordBuilder(name, bases=bases, options=options, config=config)
  builder.declare(*declarations)
  if option_overrides:
    builder.option(**option_overrides)

  attrs = dict(namespace or {})
  if module is None:
    module = sys._getframe(1).f_globals.get("__name__", "__main__")
  attrs.setdefault("__module__", module)
  return builder.build_type(attrs)


__all__ = [
  "MISSING",
  "ConfigurationError",
  "DefaultKind",
  "FactoryDefault",
  "FieldDeclaration",
  "FieldKind",
  "FieldSpec",
  "FrozenInstanceError",
  "GenerationOptions",
  "HashAction",
  "LiteralDefault",
  "NoDefault",
  "RecordBehaviors",
  "RecordBuilder",
  "RecordCompiler",
  "RecordConfig",
  "RecordError",
  "RecordTypeDescriptor",
  "asdict",
  "astuple",
  "build_descriptor",
  "compile_behaviors",
  "descriptor_of",
  "field",
  "fields",
  "is_record",
  "materialize",
  "record",
  "replace",
  "__version__",
]
