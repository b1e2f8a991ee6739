"""
Record Class Materialization.

Creates the Python class for a descriptor with a single ``type()`` call. The
namespace is fully assembled beforehand (generated methods, caller-supplied
attributes, class variables, literal defaults) so nothing is attached to the
class after it exists.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from rich.markup import escape

from recordsmith.compiler.behaviors import RecordCompiler
from recordsmith.config import RecordConfig
from recordsmith.enums import DefaultKind, FieldKind
from recordsmith.errors import ConfigurationError
from recordsmith.schema import RecordTypeDescriptor
from recordsmith.utils.console import log_debug

DESCRIPTOR_ATTR = "__record_descriptor__"


def record_descriptor_of_class(cls: type) -> Optional[RecordTypeDescriptor]:
  """
  Returns the descriptor a record class was built from, or None for other classes.

  Only the class's own ``__dict__`` is consulted, so a plain subclass of a
  record is not itself a record.
  """
  descriptor = cls.__dict__.get(DESCRIPTOR_ATTR) if isinstance(cls, type) else None
  return descriptor if isinstance(descriptor, RecordTypeDescriptor) else None


def record_bases_of(bases: Sequence[Any]) -> Tuple[RecordTypeDescriptor, ...]:
  """
  Resolves the direct record ancestors contributed by a list of bases.

  Descriptors count as themselves. For a class, every record class in its MRO
  counts, so a plain subclass of a record contributes the record it extends.
  Records that are already ancestors of another contributed record are
  dropped, leaving the most-derived ones in first-seen order.

  Args:
      bases (Sequence[Any]): Descriptors and/or classes.

  Returns:
      Tuple[RecordTypeDescriptor, ...]: The direct record ancestors.
  """
  found: List[RecordTypeDescriptor] = []
  for base in bases:
    if isinstance(base, RecordTypeDescriptor):
      candidates = [base]
    elif isinstance(base, type):
      candidates = [d for d in map(record_descriptor_of_class, base.__mro__) if d is not None]
    else:
      candidates = []
    for candidate in candidates:
      if not any(candidate is seen for seen in found):
        found.append(candidate)

  inherited: List[RecordTypeDescriptor] = []
  pending = [b for d in found for b in d.bases]
  while pending:
    ancestor = pending.pop()
    if not any(ancestor is seen for seen in inherited):
      inherited.append(ancestor)
      pending.extend(ancestor.bases)

  return tuple(d for d in found if not any(d is a for a in inherited))


def _check_bases(descriptor: RecordTypeDescriptor, bases: Sequence[type]) -> None:
  record_bases = record_bases_of(bases)
  if len(record_bases) != len(descriptor.bases) or any(a is not b for a, b in zip(record_bases, descriptor.bases)):
    raise ConfigurationError(
      f"{descriptor.name}: record bases {[d.name for d in record_bases]} do not match the descriptor's "
      f"bases {[d.name for d in descriptor.bases]}"
    )


def _check_overrides(descriptor: RecordTypeDescriptor, namespace: Mapping[str, Any]) -> None:
  if descriptor.frozen:
    for attr in ("__setattr__", "__delattr__"):
      if attr in namespace:
        raise ConfigurationError(f"{descriptor.name}: cannot define {attr} on a frozen record")
  if descriptor.options.generate_hash is True and "__hash__" in namespace:
    raise ConfigurationError(f"{descriptor.name}: cannot define __hash__ when generate_hash=True")


def _docstring(descriptor: RecordTypeDescriptor) -> str:
  params = ", ".join(spec.name for spec in descriptor.init_fields)
  return f"{descriptor.name}({params})"


def materialize(
  descriptor: RecordTypeDescriptor,
  bases: Sequence[type] = (),
  namespace: Optional[Mapping[str, Any]] = None,
  config: Optional[RecordConfig] = None,
) -> type:
  """
  Creates the record class for a descriptor.

  Caller-supplied attributes take precedence over generated methods, except
  for the combinations rejected by the frozen guard and forced hashing.

  Args:
      descriptor (RecordTypeDescriptor): The resolved record type.
      bases (Sequence[type]): Base classes. The record ancestors they resolve
          to (see `record_bases_of`) must match ``descriptor.bases`` in order.
      namespace (Optional[Mapping]): Extra class attributes such as
          ``__post_init__``, ``__module__`` or methods.
      config (Optional[RecordConfig]): Compiler configuration.

  Returns:
      type: The new class.

  Raises:
      ConfigurationError: If the bases do not match or an override is not allowed.
  """
  bases = tuple(bases)
  _check_bases(descriptor, bases)

  attrs: Dict[str, Any] = dict(namespace or {})
  _check_overrides(descriptor, attrs)

  has_post_init = "__post_init__" in attrs or any(hasattr(base, "__post_init__") for base in bases)
  behaviors = RecordCompiler(config).compile(descriptor, has_post_init=has_post_init, module=attrs.get("__module__"))

  for name, value in behaviors.namespace().items():
    if name in attrs:
      log_debug(f"[record]{escape(descriptor.name)}[/record] keeps its own {name}")
      continue
    attrs[name] = value

  for spec in descriptor.declared_fields:
    if spec.kind == FieldKind.INIT_VAR or spec.default.kind != DefaultKind.LITERAL:
      continue
    attrs.setdefault(spec.name, spec.default.value)

  attrs.setdefault("__doc__", _docstring(descriptor))
  attrs.setdefault("__match_args__", tuple(spec.name for spec in descriptor.init_fields if spec.kind == FieldKind.INSTANCE))
  attrs[DESCRIPTOR_ATTR] = descriptor

  return type(descriptor.name, bases or (object,), attrs)
