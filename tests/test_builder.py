"""
Tests for the Record Descriptor Builder.

Verifies:
1. Declaration shapes and normalization.
2. Build-time ConfigurationError cases (ordering, default+factory, mutable defaults, names).
3. Kind-specific restrictions for class and init-only variables.
4. Fluent builder options.
"""

from collections import OrderedDict, deque

import pytest

from recordsmith.builder import (
  RecordBuilder,
  build_descriptor,
  field,
  normalize_declaration,
)
from recordsmith.enums import DefaultKind, FieldKind
from recordsmith.errors import ConfigurationError
from recordsmith.schema import GenerationOptions


def test_normalize_shapes():
  """Names, pairs, triples and declarations are all accepted."""
  assert normalize_declaration("x").name == "x"

  pair = normalize_declaration(("x", int))
  assert pair.name == "x" and pair.declared_type is int

  triple = normalize_declaration(("x", int, field(default=3)))
  assert triple.name == "x"
  assert triple.declared_type is int
  assert triple.literal.value == 3


@pytest.mark.parametrize("raw", [42, ("x",), ("x", int, 3, 4), ("x", int, "not a declaration")])
def test_normalize_rejects_unknown_shapes(raw):
  with pytest.raises(ConfigurationError):
    normalize_declaration(raw)


def test_normalize_rejects_unnamed_declaration():
  with pytest.raises(ConfigurationError, match="no name"):
    normalize_declaration(field(default=1))


def test_fields_keep_declaration_order():
  descriptor = build_descriptor("R", ["c", "a", "b"])
  assert descriptor.field_names == ("c", "a", "b")
  assert [f.order for f in descriptor.fields] == [0, 1, 2]


def test_default_variants_resolved():
  descriptor = build_descriptor(
    "R",
    [
      field("a"),
      field("b", default=None),
      field("c", default_factory=list),
    ],
  )
  a, b, c = descriptor.fields
  assert a.default.kind == DefaultKind.NONE
  assert b.default.kind == DefaultKind.LITERAL and b.default.value is None
  assert c.default.kind == DefaultKind.FACTORY and c.default.factory is list


def test_non_default_after_default_rejected():
  with pytest.raises(ConfigurationError, match="non-default argument 'y' follows default argument 'x'"):
    build_descriptor("R", [field("x", default=1), field("y")])


def test_factory_counts_as_default_for_ordering():
  with pytest.raises(ConfigurationError, match="non-default argument"):
    build_descriptor("R", [field("x", default_factory=list), field("y")])


def test_init_excluded_fields_exempt_from_ordering():
  """A no-default field outside the constructor may follow a defaulted one."""
  descriptor = build_descriptor("R", [field("x", default=1), field("y", init=False), field("z", default=2)])
  assert descriptor.field_names == ("x", "y", "z")


def test_init_excluded_default_does_not_poison_ordering():
  """A defaulted field outside the constructor does not force later parameters to have defaults."""
  descriptor = build_descriptor("R", [field("x", default=1, init=False), field("y")])
  assert [f.name for f in descriptor.init_fields] == ["y"]


def test_default_and_factory_rejected():
  with pytest.raises(ConfigurationError, match="both default and default_factory"):
    build_descriptor("R", [field("x", default=1, default_factory=int)])


@pytest.mark.parametrize("value", [[], {}, set(), [1, 2], {"a": 1}, OrderedDict(), deque(), bytearray()])
def test_mutable_literal_default_rejected(value):
  with pytest.raises(ConfigurationError, match="mutable default"):
    build_descriptor("R", [field("x", default=value)])


@pytest.mark.parametrize("value", [(), frozenset(), "text", 0, None, (1, [2])])
def test_immutable_literal_default_accepted(value):
  """The heuristic only looks at the container kind, not nested contents."""
  descriptor = build_descriptor("R", [field("x", default=value)])
  assert descriptor.fields[0].default.value == value


def test_non_callable_factory_rejected():
  with pytest.raises(ConfigurationError, match="must be callable"):
    build_descriptor("R", [field("x", default_factory=3)])


@pytest.mark.parametrize("name", ["1x", "class", "with space", "__record_x", ""])
def test_invalid_field_names_rejected(name):
  with pytest.raises(ConfigurationError):
    build_descriptor("R", [field(name)])


def test_invalid_record_name_rejected():
  with pytest.raises(ConfigurationError, match="not a valid identifier"):
    build_descriptor("not valid", [])


def test_duplicate_field_rejected():
  with pytest.raises(ConfigurationError, match="duplicate field 'x'"):
    build_descriptor("R", ["x", "y", "x"])


def test_class_var_cannot_use_factory():
  with pytest.raises(ConfigurationError, match="class variables"):
    build_descriptor("R", [field("K", kind=FieldKind.CLASS_VAR, default_factory=list)])


def test_class_var_excluded_from_fields():
  descriptor = build_descriptor("R", ["x", field("LIMIT", int, default=10, kind=FieldKind.CLASS_VAR)])
  assert descriptor.field_names == ("x",)
  assert [f.name for f in descriptor.class_var_fields] == ["LIMIT"]


def test_class_var_exempt_from_ordering():
  descriptor = build_descriptor("R", [field("K", kind=FieldKind.CLASS_VAR, default=1), field("x")])
  assert descriptor.field_names == ("x",)


def test_init_var_restrictions():
  with pytest.raises(ConfigurationError, match="init-only variables cannot use default_factory"):
    build_descriptor("R", [field("seed", kind=FieldKind.INIT_VAR, default_factory=int)])
  with pytest.raises(ConfigurationError, match="must be constructor parameters"):
    build_descriptor("R", [field("seed", kind=FieldKind.INIT_VAR, init=False)])


def test_init_var_takes_part_in_ordering():
  with pytest.raises(ConfigurationError, match="non-default argument 'seed'"):
    build_descriptor("R", [field("x", default=1), field("seed", kind=FieldKind.INIT_VAR)])


def test_metadata_carried():
  descriptor = build_descriptor("R", [field("x", metadata={"unit": "m"})])
  assert descriptor.fields[0].metadata == {"unit": "m"}


def test_metadata_is_read_only():
  source = {"unit": "m"}
  spec = build_descriptor("R", [field("x", metadata=source), "y"]).fields
  with pytest.raises(TypeError):
    spec[0].metadata["unit"] = "km"
  with pytest.raises(TypeError):
    spec[1].metadata["note"] = "added"

  source["unit"] = "km"
  assert spec[0].metadata["unit"] == "m"


def test_own_fields_recorded():
  descriptor = build_descriptor("R", ["x", "y"])
  assert [f.name for f in descriptor.own_fields] == ["x", "y"]


def test_builder_fluent_api():
  descriptor = (
    RecordBuilder("Config")
    .field("name", str)
    .field("retries", int, default=3)
    .class_var("VERSION", str, default="1")
    .init_var("verbose", bool, default=False)
    .option(frozen=True)
    .build()
  )
  assert descriptor.name == "Config"
  assert descriptor.field_names == ("name", "retries")
  assert descriptor.frozen
  assert [f.name for f in descriptor.init_fields] == ["name", "retries", "verbose"]


def test_builder_uses_explicit_options():
  options = GenerationOptions(generate_repr=False)
  descriptor = RecordBuilder("R", options=options).field("x").build()
  assert descriptor.options.generate_repr is False


def test_builder_rejects_unknown_option():
  with pytest.raises(ConfigurationError, match="Unknown generation options"):
    RecordBuilder("R").option(slots=True)


def test_builder_declare_accepts_shapes():
  descriptor = RecordBuilder("R").declare("a", ("b", int), field("c", default=1)).build()
  assert descriptor.field_names == ("a", "b", "c")


def test_failed_build_is_logged(captured_console):
  with pytest.raises(ConfigurationError):
    build_descriptor("Broken", [field("x", default=1), field("y")])
  assert "Rejected record Broken" in captured_console.export_text()


def test_hashable_mutable_record_warns(captured_console):
  build_descriptor("Risky", ["x"], options=GenerationOptions(generate_hash=True))
  assert "hashable but mutable" in captured_console.export_text()
