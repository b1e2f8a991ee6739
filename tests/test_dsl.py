"""
Tests for the Record Definition Language.

Verifies:
1. YAML parsing into validated definitions (single and list forms).
2. Materialization order, base resolution and factory import paths.
3. Error reporting for malformed input.
"""

from collections import OrderedDict

import pytest

from recordsmith import is_record
from recordsmith.config import RecordConfig
from recordsmith.dsl import (
  FieldDef,
  RecordDef,
  load_definitions,
  load_records,
  materialize_definitions,
  parse_definitions,
  resolve_factory,
)
from recordsmith.enums import FieldKind
from recordsmith.errors import ConfigurationError

INVENTORY_YAML = """
- name: Item
  frozen: true
  doc: A stock item.
  fields:
    - {name: sku, type: str}
    - {name: price, type: float, default: 0.0}
- name: Shelf
  fields:
    - {name: label, type: str}
    - {name: items, type: list, default_factory: builtins.list}
    - {name: CAPACITY, type: int, default: 20, kind: class_var}
- name: LabelledShelf
  bases: [Shelf]
  fields:
    - {name: colour, type: str, default: null}
"""


def test_field_default_presence():
  """An explicit null default differs from an absent one."""
  assert FieldDef(name="a", default=None).has_default
  assert not FieldDef(name="a").has_default


def test_option_overrides_only_set_keys():
  rdef = RecordDef(name="R", frozen=True, hash=None)
  assert rdef.option_overrides() == {"frozen": True, "generate_hash": None}
  assert RecordDef(name="R").option_overrides() == {}


def test_load_definitions_from_text():
  defs = load_definitions(INVENTORY_YAML)
  assert [d.name for d in defs] == ["Item", "Shelf", "LabelledShelf"]
  assert defs[1].fields[2].kind == FieldKind.CLASS_VAR
  assert defs[2].bases == ["Shelf"]


def test_load_single_definition(tmp_path):
  path = tmp_path / "point.yaml"
  path.write_text("name: Point\nfields: [{name: x}, {name: y}]\n", encoding="utf-8")
  defs = load_definitions(path)
  assert len(defs) == 1
  assert [f.name for f in defs[0].fields] == ["x", "y"]


def test_empty_document():
  assert load_definitions("") == []


def test_malformed_yaml():
  with pytest.raises(ConfigurationError, match="Malformed"):
    load_definitions("- name: [unclosed")


def test_unknown_keys_rejected():
  with pytest.raises(ConfigurationError, match="Invalid record definition"):
    parse_definitions({"name": "R", "slots": True})


def test_load_records():
  records = load_records(INVENTORY_YAML, module="inventory")
  Item, Shelf, LabelledShelf = records["Item"], records["Shelf"], records["LabelledShelf"]

  assert all(is_record(cls) for cls in records.values())
  assert Item.__doc__ == "A stock item."
  assert Item.__module__ == "inventory"
  assert hash(Item("a")) == hash(("a", 0.0))
  assert repr(Item("a")) == "Item(sku='a', price=0.0)"

  a, b = Shelf("top"), Shelf("bottom")
  a.items.append(1)
  assert b.items == []
  assert Shelf.CAPACITY == 20

  labelled = LabelledShelf("x")
  assert issubclass(LabelledShelf, Shelf)
  assert labelled.colour is None
  assert repr(labelled) == "LabelledShelf(label='x', items=[], colour=None)"


def test_records_belong_to_calling_module():
  records = load_records("name: R\nfields: [{name: a}]\n")
  assert records["R"].__module__ == __name__

  direct = materialize_definitions(parse_definitions({"name": "S"}))
  assert direct["S"].__module__ == __name__


def test_config_supplies_defaults():
  records = load_records("name: R\nfields: [{name: a}]\n", config=RecordConfig(frozen=True))
  with pytest.raises(AttributeError):
    records["R"](1).a = 2


def test_definition_options_win_over_config():
  records = load_records("name: R\nfrozen: false\nfields: [{name: a}]\n", config=RecordConfig(frozen=True))
  obj = records["R"](1)
  obj.a = 2
  assert obj.a == 2


def test_unknown_base():
  with pytest.raises(ConfigurationError, match="unknown base record 'Missing'"):
    load_records("name: R\nbases: [Missing]\n")


def test_duplicate_definition():
  with pytest.raises(ConfigurationError, match="defined twice"):
    load_records("- name: R\n- name: R\n")


def test_invalid_declaration_surfaces():
  with pytest.raises(ConfigurationError, match="mutable default"):
    load_records("name: R\nfields: [{name: a, default: []}]\n")


def test_resolve_factory():
  assert resolve_factory("builtins.list") is list
  assert resolve_factory("collections.OrderedDict") is OrderedDict


@pytest.mark.parametrize("path", ["nowhere.module.thing", "builtins.not_a_thing", "math.pi"])
def test_resolve_factory_errors(path):
  with pytest.raises(ConfigurationError):
    resolve_factory(path)


def test_materialize_definitions_logs(captured_console):
  materialize_definitions(parse_definitions([{"name": "A"}, {"name": "B"}]))
  assert "Materialized 2 record(s): A, B" in captured_console.export_text()
