"""
Record Introspection and Conversion Helpers.

Functions operating on materialized record classes and instances: field
lookup, recursive conversion to dicts and tuples, and functional update.
"""

import copy
from typing import Any, Callable, Dict, List, Tuple

from recordsmith.compiler.materialize import DESCRIPTOR_ATTR
from recordsmith.enums import FieldKind
from recordsmith.schema import FieldSpec, RecordTypeDescriptor


def is_record(obj: Any) -> bool:
  """
  Checks whether an object is a record class or a record instance.

  Args:
      obj (Any): Object to test.

  Returns:
      bool: True for classes built by recordsmith (and their subclasses) and their instances.
  """
  return isinstance(getattr(obj, DESCRIPTOR_ATTR, None), RecordTypeDescriptor)


def _is_record_instance(obj: Any) -> bool:
  return is_record(obj) and not isinstance(obj, type)


def descriptor_of(obj: Any) -> RecordTypeDescriptor:
  """
  Returns the descriptor of a record class or instance.

  Raises:
      TypeError: If the object is not a record.
  """
  if not is_record(obj):
    raise TypeError(f"{obj!r} is not a record type or instance")
  return getattr(obj, DESCRIPTOR_ATTR)


def fields(obj: Any) -> Tuple[FieldSpec, ...]:
  """
  Returns the instance fields of a record class or instance, in order.

  Class variables and init-only variables are not included.

  Raises:
      TypeError: If the object is not a record.
  """
  return descriptor_of(obj).fields


def asdict(obj: Any, *, dict_factory: Callable[[List[Tuple[str, Any]]], Any] = dict) -> Any:
  """
  Converts a record instance into a dict of its fields, recursively.

  Nested records, lists, tuples (named tuples included) and dicts are
  converted; any other value is deep-copied.

  Args:
      obj (Any): A record instance.
      dict_factory (Callable): Builds each mapping from a list of (name, value) pairs.

  Returns:
      Any: The result of ``dict_factory`` for the top-level record.

  Raises:
      TypeError: If ``obj`` is not a record instance.
  """
  if not _is_record_instance(obj):
    raise TypeError("asdict() should be called on record instances")
  return _asdict_inner(obj, dict_factory)


def _asdict_inner(obj: Any, dict_factory: Callable) -> Any:
  if _is_record_instance(obj):
    return dict_factory([(f.name, _asdict_inner(getattr(obj, f.name), dict_factory)) for f in fields(obj)])
  if isinstance(obj, tuple) and hasattr(obj, "_fields"):
    return type(obj)(*[_asdict_inner(v, dict_factory) for v in obj])
  if isinstance(obj, (list, tuple)):
    return type(obj)(_asdict_inner(v, dict_factory) for v in obj)
  if isinstance(obj, dict):
    return type(obj)((_asdict_inner(k, dict_factory), _asdict_inner(v, dict_factory)) for k, v in obj.items())
  return copy.deepcopy(obj)


def astuple(obj: Any, *, tuple_factory: Callable[[List[Any]], Any] = tuple) -> Any:
  """
  Converts a record instance into a tuple of its field values, recursively.

  Args:
      obj (Any): A record instance.
      tuple_factory (Callable): Builds each tuple from a list of values.

  Returns:
      Any: The result of ``tuple_factory`` for the top-level record.

  Raises:
      TypeError: If ``obj`` is not a record instance.
  """
  if not _is_record_instance(obj):
    raise TypeError("astuple() should be called on record instances")
  return _astuple_inner(obj, tuple_factory)


def _astuple_inner(obj: Any, tuple_factory: Callable) -> Any:
  if _is_record_instance(obj):
    return tuple_factory([_astuple_inner(getattr(obj, f.name), tuple_factory) for f in fields(obj)])
  if isinstance(obj, tuple) and hasattr(obj, "_fields"):
    return type(obj)(*[_astuple_inner(v, tuple_factory) for v in obj])
  if isinstance(obj, (list, tuple)):
    return type(obj)(_astuple_inner(v, tuple_factory) for v in obj)
  if isinstance(obj, dict):
    return type(obj)((_astuple_inner(k, tuple_factory), _astuple_inner(v, tuple_factory)) for k, v in obj.items())
  return copy.deepcopy(obj)


def replace(obj: Any, **changes: Any) -> Any:
  """
  Creates a new instance of the same record type with some fields replaced.

  The new instance goes through the generated constructor, so factories and
  ``__post_init__`` run again.

  Args:
      obj (Any): A record instance.
      **changes: New field values (and init-only variables).

  Returns:
      Any: The new instance.

  Raises:
      TypeError: If ``obj`` is not a record instance.
      ValueError: If an init-excluded field is changed or a required
          init-only variable is missing.
  """
  if not _is_record_instance(obj):
    raise TypeError("replace() should be called on record instances")

  kwargs: Dict[str, Any] = dict(changes)
  for spec in descriptor_of(obj).declared_fields:
    if spec.kind == FieldKind.CLASS_VAR:
      continue
    if not spec.include_in_init:
      if spec.name in kwargs:
        raise ValueError(f"field {spec.name!r} is declared with init=False, it cannot be specified with replace()")
      continue
    if spec.name in kwargs:
      continue
    if spec.kind == FieldKind.INIT_VAR:
      if not spec.has_default:
        raise ValueError(f"init-only variable {spec.name!r} must be specified with replace()")
      continue
    kwargs[spec.name] = getattr(obj, spec.name)

  return obj.__class__(**kwargs)
