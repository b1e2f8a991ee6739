"""
Record Operations.

Builds the callable operations of a record type directly from its descriptor.
Each operation is a closure over the precomputed field tuples it needs, so no
source text is evaluated at run time:

- ``__init__``: binds arguments against a signature derived from the init
  fields, resolves factories, assigns, then calls ``__post_init__``.
- ``__repr__``: ``TypeName(f1=..., f2=...)`` over repr fields.
- ``__eq__``/``__ne__``/``__lt__``/``__le__``/``__gt__``/``__ge__``: exact
  type identity, then tuple comparison over compare fields.
- ``__hash__``: hash of the tuple of hash fields.
- ``__setattr__``/``__delattr__``: mutation guard for frozen records.
"""

import inspect
import operator
import reprlib
from typing import Any, Callable, Dict, Optional, Tuple

from recordsmith.enums import DefaultKind, HashAction
from recordsmith.errors import FrozenInstanceError
from recordsmith.schema import FieldSpec, RecordTypeDescriptor

OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
  "__eq__": operator.eq,
  "__ne__": operator.ne,
  "__lt__": operator.lt,
  "__le__": operator.le,
  "__gt__": operator.gt,
  "__ge__": operator.ge,
}


class _UseFactory:
  """Parameter default telling the constructor to call the field's factory."""

  def __repr__(self) -> str:
    return "<factory>"


USE_FACTORY = _UseFactory()

Initializer = Callable[[Dict[str, Any]], Any]


def _values(obj: Any, names: Tuple[str, ...]) -> Tuple[Any, ...]:
  return tuple(getattr(obj, name) for name in names)


def receiver_name(descriptor: RecordTypeDescriptor) -> str:
  """Name of the constructor's first parameter; ``self`` unless a field already uses it."""
  names = {spec.name for spec in descriptor.declared_fields}
  return "__record_self" if "self" in names else "self"


def init_signature(descriptor: RecordTypeDescriptor, with_receiver: bool = False) -> inspect.Signature:
  """
  Builds the constructor signature of a record type.

  Literal defaults are the parameter defaults; factory-backed parameters
  default to the `USE_FACTORY` marker.

  Args:
      descriptor (RecordTypeDescriptor): The resolved record type.
      with_receiver (bool): Prepend the receiver parameter.

  Returns:
      inspect.Signature: The signature, without a return annotation.
  """
  params = []
  if with_receiver:
    params.append(inspect.Parameter(receiver_name(descriptor), inspect.Parameter.POSITIONAL_OR_KEYWORD))
  for spec in descriptor.init_fields:
    default: Any = inspect.Parameter.empty
    if spec.default.kind == DefaultKind.LITERAL:
      default = spec.default.value
    elif spec.default.kind == DefaultKind.FACTORY:
      default = USE_FACTORY
    params.append(inspect.Parameter(spec.name, inspect.Parameter.POSITIONAL_OR_KEYWORD, default=default))
  return inspect.Signature(params)


def _initializer(spec: FieldSpec) -> Optional[Initializer]:
  """Returns how a field gets its initial value from the bound arguments, or None if it gets none."""
  name = spec.name
  if spec.include_in_init:
    if spec.has_factory:
      factory = spec.default.factory
      return lambda arguments: factory() if arguments[name] is USE_FACTORY else arguments[name]
    return lambda arguments: arguments[name]
  if spec.has_factory:
    factory = spec.default.factory
    return lambda arguments: factory()
  if spec.default.kind == DefaultKind.LITERAL:
    value = spec.default.value
    return lambda arguments: value
  return None


def make_init(descriptor: RecordTypeDescriptor, has_post_init: bool = False) -> Callable[..., None]:
  """
  Builds ``__init__``.

  Args:
      descriptor (RecordTypeDescriptor): The resolved record type.
      has_post_init (bool): Whether to call ``__post_init__`` with the init-only variables last.

  Returns:
      Callable: The constructor. Wrong or missing arguments raise ``TypeError``.
  """
  signature = init_signature(descriptor)
  plan = []
  for spec in descriptor.fields:
    initializer = _initializer(spec)
    if initializer is not None:
      plan.append((spec.name, initializer))
  init_var_names = tuple(spec.name for spec in descriptor.init_var_fields)
  assign = object.__setattr__ if descriptor.frozen else setattr

  def __init__(self, /, *args: Any, **kwargs: Any) -> None:
    bound = signature.bind(*args, **kwargs)
    bound.apply_defaults()
    arguments = bound.arguments
    for name, initializer in plan:
      assign(self, name, initializer(arguments))
    if has_post_init:
      self.__post_init__(*(arguments[name] for name in init_var_names))

  __init__.__signature__ = init_signature(descriptor, with_receiver=True)
  return __init__


def make_repr(descriptor: RecordTypeDescriptor) -> Callable[[Any], str]:
  names = tuple(spec.name for spec in descriptor.repr_fields)

  @reprlib.recursive_repr()
  def __repr__(self: Any) -> str:
    parts = ", ".join(f"{name}={getattr(self, name)!r}" for name in names)
    return f"{self.__class__.__qualname__}({parts})"

  return __repr__


def make_comparison(descriptor: RecordTypeDescriptor, method: str) -> Callable[[Any, Any], Any]:
  """
  Builds one comparison method.

  Operands of a different concrete class (subclasses included) yield
  ``NotImplemented``.

  Args:
      descriptor (RecordTypeDescriptor): The resolved record type.
      method (str): Dunder name, a key of `OPERATORS`.

  Returns:
      Callable: The comparison method.
  """
  op = OPERATORS[method]
  names = tuple(spec.name for spec in descriptor.compare_fields)

  def compare(self: Any, other: Any) -> Any:
    if other.__class__ is self.__class__:
      return op(_values(self, names), _values(other, names))
    return NotImplemented

  compare.__name__ = method
  return compare


def make_hash(descriptor: RecordTypeDescriptor) -> Callable[[Any], int]:
  names = tuple(spec.name for spec in descriptor.hash_fields)

  def __hash__(self: Any) -> int:
    return hash(_values(self, names))

  return __hash__


def make_frozen_guards() -> Tuple[Callable[..., None], Callable[..., None]]:
  def __setattr__(self: Any, name: str, value: Any) -> None:
    raise FrozenInstanceError(f"cannot assign to field {name!r}")

  def __delattr__(self: Any, name: str) -> None:
    raise FrozenInstanceError(f"cannot delete field {name!r}")

  return __setattr__, __delattr__


def build_operations(descriptor: RecordTypeDescriptor, has_post_init: bool = False) -> Dict[str, Callable[..., Any]]:
  """
  Builds every operation selected by the descriptor's options.

  Args:
      descriptor (RecordTypeDescriptor): The resolved record type.
      has_post_init (bool): Whether the constructor must call ``__post_init__``.

  Returns:
      Dict[str, Callable]: Dunder name to function, in a stable order.
  """
  options = descriptor.options
  methods: Dict[str, Callable[..., Any]] = {}
  if options.generate_init:
    methods["__init__"] = make_init(descriptor, has_post_init)
  if options.generate_repr:
    methods["__repr__"] = make_repr(descriptor)
  if options.generate_compare:
    for method in OPERATORS:
      methods[method] = make_comparison(descriptor, method)
  if descriptor.hash_action == HashAction.GENERATE:
    methods["__hash__"] = make_hash(descriptor)
  if options.frozen:
    methods["__setattr__"], methods["__delattr__"] = make_frozen_guards()
  return methods

