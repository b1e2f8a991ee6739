"""
Record Method Synthesizer.

Builds the LibCST function definitions implementing each behavior contract of
a `RecordTypeDescriptor`:

- ``__init__``: one parameter per init field, factory calls, post-init hook.
- ``__repr__``: ``TypeName(f1=..., f2=...)`` over repr fields.
- ``__eq__``/``__ne__``/``__lt__``/``__le__``/``__gt__``/``__ge__``: exact
  type identity, then tuple comparison over compare fields.
- ``__hash__``: hash of the tuple of hash fields.
- ``__setattr__``/``__delattr__``: mutation guard for frozen records.

The rendered module is the inspectable source form of the operations built
by `recordsmith.compiler.operations`; it is never evaluated. Its free names
(defaults, factories, the factory marker) carry the reserved ``__record_``
prefix, which field names may not use.
"""

from typing import List, Sequence

import libcst as cst

from recordsmith.compiler.operations import receiver_name
from recordsmith.enums import DefaultKind, HashAction
from recordsmith.schema import FieldSpec, RecordTypeDescriptor

USE_FACTORY = "__record_use_factory"
SETATTR = "__record_setattr"
FROZEN_ERROR = "__record_frozen_error"

COMPARISONS = {
  "__eq__": "==",
  "__ne__": "!=",
  "__lt__": "<",
  "__le__": "<=",
  "__gt__": ">",
  "__ge__": ">=",
}


def default_name(field_name: str) -> str:
  return f"__record_default_{field_name}"


def factory_name(field_name: str) -> str:
  return f"__record_factory_{field_name}"


def _tuple_expr(owner: str, specs: Sequence[FieldSpec]) -> str:
  """Renders ``(owner.a, owner.b)`` with the one-element and empty cases."""
  items = [f"{owner}.{spec.name}" for spec in specs]
  if len(items) == 1:
    return f"({items[0]},)"
  return f"({', '.join(items)})"


def _func(name: str, params: List[str], body: List[cst.BaseStatement]) -> cst.FunctionDef:
  return cst.FunctionDef(
    name=cst.Name(name),
    params=cst.Parameters(params=[cst.Param(name=cst.Name(p)) for p in params]),
    body=cst.IndentedBlock(body=body or [cst.parse_statement("pass")]),
  )


class RecordSynthesizer:
  """
  Synthesizes the Python source of the generated methods for one descriptor.
  """

  def __init__(self, descriptor: RecordTypeDescriptor, has_post_init: bool = False) -> None:
    """
    Args:
        descriptor (RecordTypeDescriptor): The resolved record type.
        has_post_init (bool): Whether the type (or an ancestor) defines ``__post_init__``.
    """
    self.descriptor = descriptor
    self.has_post_init = has_post_init
    self.self_name = receiver_name(descriptor)

  def _assign(self, field_name: str, value_expr: str) -> cst.BaseStatement:
    if self.descriptor.frozen:
      return cst.parse_statement(f"{SETATTR}({self.self_name}, {field_name!r}, {value_expr})")
    return cst.parse_statement(f"{self.self_name}.{field_name} = {value_expr}")

  def build_init(self) -> cst.FunctionDef:
    """
    Builds ``__init__``.

    Literal defaults become parameter defaults. Factory-backed parameters
    default to the factory marker and the body calls the factory when it is
    received. Init-excluded fields get their factory result or literal default.

    Returns:
        cst.FunctionDef: The constructor.
    """
    params = [cst.Param(name=cst.Name(self.self_name))]
    for spec in self.descriptor.init_fields:
      default = None
      if spec.default.kind == DefaultKind.LITERAL:
        default = cst.Name(default_name(spec.name))
      elif spec.default.kind == DefaultKind.FACTORY:
        default = cst.Name(USE_FACTORY)
      params.append(cst.Param(name=cst.Name(spec.name), default=default))

    body: List[cst.BaseStatement] = []
    for spec in self.descriptor.fields:
      name = spec.name
      if spec.include_in_init:
        if spec.has_factory:
          value = f"{factory_name(name)}() if {name} is {USE_FACTORY} else {name}"
        else:
          value = name
      elif spec.has_factory:
        value = f"{factory_name(name)}()"
      elif spec.default.kind == DefaultKind.LITERAL:
        value = default_name(name)
      else:
        continue
      body.append(self._assign(name, value))

    if self.has_post_init:
      args = ", ".join(spec.name for spec in self.descriptor.init_var_fields)
      body.append(cst.parse_statement(f"{self.self_name}.__post_init__({args})"))

    return cst.FunctionDef(
      name=cst.Name("__init__"),
      params=cst.Parameters(params=params),
      body=cst.IndentedBlock(body=body or [cst.parse_statement("pass")]),
    )

  def build_repr(self) -> cst.FunctionDef:
    parts = ", ".join(f"{spec.name}={{self.{spec.name}!r}}" for spec in self.descriptor.repr_fields)
    stmt = cst.parse_statement('return f"{self.__class__.__qualname__}(' + parts + ')"')
    return _func("__repr__", ["self"], [stmt])

  def build_comparison(self, method: str) -> cst.FunctionDef:
    """
    Builds one comparison method.

    Operands of a different concrete class (subclasses included) yield
    ``NotImplemented``.

    Args:
        method (str): Dunder name, a key of `COMPARISONS`.

    Returns:
        cst.FunctionDef: The comparison method.
    """
    op = COMPARISONS[method]
    specs = self.descriptor.compare_fields
    check = cst.parse_statement(
      "if other.__class__ is self.__class__:\n"
      f"    return {_tuple_expr('self', specs)} {op} {_tuple_expr('other', specs)}\n"
    )
    return _func(method, ["self", "other"], [check, cst.parse_statement("return NotImplemented")])

  def build_hash(self) -> cst.FunctionDef:
    stmt = cst.parse_statement(f"return hash({_tuple_expr('self', self.descriptor.hash_fields)})")
    return _func("__hash__", ["self"], [stmt])

  def build_frozen_guards(self) -> List[cst.FunctionDef]:
    setter = cst.parse_statement(f'raise {FROZEN_ERROR}(f"cannot assign to field {{name!r}}")')
    deleter = cst.parse_statement(f'raise {FROZEN_ERROR}(f"cannot delete field {{name!r}}")')
    return [
      _func("__setattr__", ["self", "name", "value"], [setter]),
      _func("__delattr__", ["self", "name"], [deleter]),
    ]

  def build_functions(self) -> List[cst.FunctionDef]:
    """
    Builds every method selected by the descriptor's options.

    Returns:
        List[cst.FunctionDef]: Methods in a stable order.
    """
    options = self.descriptor.options
    funcs: List[cst.FunctionDef] = []
    if options.generate_init:
      funcs.append(self.build_init())
    if options.generate_repr:
      funcs.append(self.build_repr())
    if options.generate_compare:
      funcs.extend(self.build_comparison(method) for method in COMPARISONS)
    if self.descriptor.hash_action == HashAction.GENERATE:
      funcs.append(self.build_hash())
    if options.frozen:
      funcs.extend(self.build_frozen_guards())
    return funcs

  def build_module(self) -> cst.Module:
    body = []
    for i, func in enumerate(self.build_functions()):
      if i:
        func = func.with_changes(leading_lines=[cst.EmptyLine(newline=cst.Newline())])
      body.append(func)
    return cst.Module(body=body)

