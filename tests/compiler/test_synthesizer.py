"""
Tests for the Record Method Synthesizer.

Verifies:
1. Method selection per generation options.
2. Constructor signature shape (literal defaults, factory marker).
3. Reserved names in the rendered source, in step with the runtime signature.
4. Stable source output (snapshot).
"""

import ast

import libcst as cst

from recordsmith.builder import build_descriptor, field
from recordsmith.compiler.operations import USE_FACTORY as USE_FACTORY_MARKER, init_signature
from recordsmith.compiler.synthesizer import (
  FROZEN_ERROR,
  SETATTR,
  USE_FACTORY,
  RecordSynthesizer,
  default_name,
  factory_name,
)
from recordsmith.enums import FieldKind
from recordsmith.schema import GenerationOptions


def _functions(source):
  tree = ast.parse(source)
  return {node.name: node for node in tree.body if isinstance(node, ast.FunctionDef)}


def _normalize(source):
  return ast.dump(ast.parse(source))


def _module_code(func):
  return cst.Module(body=[func]).code


def _descriptor(**options):
  return build_descriptor(
    "Item",
    [
      field("name", str),
      field("price", float, default=0.0),
      field("tags", list, default_factory=list),
    ],
    options=GenerationOptions(**options),
  )


def test_default_method_selection():
  """Mutable records get init, repr and comparisons, but no __hash__ function."""
  funcs = _functions(RecordSynthesizer(_descriptor()).build_module().code)
  assert set(funcs) == {"__init__", "__repr__", "__eq__", "__ne__", "__lt__", "__le__", "__gt__", "__ge__"}


def test_frozen_method_selection():
  funcs = _functions(RecordSynthesizer(_descriptor(frozen=True)).build_module().code)
  assert {"__hash__", "__setattr__", "__delattr__"} <= set(funcs)


def test_disabled_generators():
  descriptor = _descriptor(generate_init=False, generate_repr=False, generate_compare=False)
  assert RecordSynthesizer(descriptor).build_functions() == []


def test_init_signature():
  init = _functions(RecordSynthesizer(_descriptor()).build_module().code)["__init__"]
  args = init.args
  assert [a.arg for a in args.args] == ["self", "name", "price", "tags"]
  defaults = [d.id for d in args.defaults]
  assert defaults == [default_name("price"), USE_FACTORY]


def test_init_excluded_fields_assigned_in_body():
  descriptor = build_descriptor(
    "Counter",
    [
      field("label", str),
      field("hits", int, default=0, init=False),
      field("log", list, default_factory=list, init=False),
    ],
  )
  code = ast.unparse(ast.parse(_module_code(RecordSynthesizer(descriptor).build_init())))
  assert f"self.hits = {default_name('hits')}" in code
  assert f"self.log = {factory_name('log')}()" in code
  init = _functions(code)["__init__"]
  assert [a.arg for a in init.args.args] == ["self", "label"]


def test_frozen_init_uses_object_setattr():
  code = RecordSynthesizer(_descriptor(frozen=True)).build_module().code
  assert f"{SETATTR}(self, 'name', name)" in code
  assert "self.name = name" not in code


def test_post_init_receives_init_vars():
  descriptor = build_descriptor(
    "Seeded",
    [field("value", int), field("seed", int, default=0, kind=FieldKind.INIT_VAR)],
  )
  code = RecordSynthesizer(descriptor, has_post_init=True).build_module().code
  init = _functions(code)["__init__"]
  last = init.body[-1]
  assert isinstance(last, ast.Expr)
  assert ast.unparse(last) == "self.__post_init__(seed)"
  assert "self.seed" not in code


def test_field_named_self_renames_receiver():
  descriptor = build_descriptor("Odd", ["self", "other"])
  code = RecordSynthesizer(descriptor).build_module().code
  init = _functions(code)["__init__"]
  assert [a.arg for a in init.args.args] == ["__record_self", "self", "other"]


def test_rendered_init_matches_runtime_signature():
  descriptor = _descriptor(frozen=True)
  init = _functions(RecordSynthesizer(descriptor).build_module().code)["__init__"]
  signature = init_signature(descriptor, with_receiver=True)

  assert [a.arg for a in init.args.args] == list(signature.parameters)
  assert [ast.unparse(d) for d in init.args.defaults] == [default_name("price"), USE_FACTORY]
  assert signature.parameters["price"].default == 0.0
  assert signature.parameters["tags"].default is USE_FACTORY_MARKER
  assert repr(USE_FACTORY_MARKER) == "<factory>"
  assert all(name.startswith("__record_") for name in (USE_FACTORY, SETATTR, FROZEN_ERROR, factory_name("tags")))


def test_single_field_tuples():
  descriptor = build_descriptor("One", ["a"], options=GenerationOptions(frozen=True))
  funcs = _functions(RecordSynthesizer(descriptor).build_module().code)
  assert ast.unparse(funcs["__hash__"].body[0]) == "return hash((self.a,))"


def test_empty_record_hash():
  descriptor = build_descriptor("Empty", [], options=GenerationOptions(frozen=True))
  funcs = _functions(RecordSynthesizer(descriptor).build_module().code)
  assert ast.unparse(funcs["__hash__"].body[0]) == "return hash(())"
  assert ast.unparse(funcs["__init__"].body[0]) == "pass"


def test_generated_source_snapshot(snapshot):
  code = RecordSynthesizer(_descriptor(frozen=True)).build_module().code
  snapshot.assert_match(code, extension="py.txt", normalizer=_normalize)
