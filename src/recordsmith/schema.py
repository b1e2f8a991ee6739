"""
Pydantic Schemas for Record Descriptors.

This module defines the immutable metadata produced by the descriptor builder:

- Default variants (`NoDefault`, `LiteralDefault`, `FactoryDefault`) which
  distinguish "no default" from "default is None" without an in-band marker.
- `FieldSpec`: one resolved field.
- `GenerationOptions`: which behaviors are synthesized for a record type.
- `RecordTypeDescriptor`: the merged, resolved view of a record type.

All models are frozen; a descriptor is computed once at definition time and
never recomputed.
"""

from types import MappingProxyType
from typing import Annotated, Any, Callable, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recordsmith.enums import DefaultKind, FieldKind, HashAction


class NoDefault(BaseModel):
  """The field has no default; a value must be supplied (or set later)."""

  model_config = ConfigDict(frozen=True)

  kind: Literal[DefaultKind.NONE] = DefaultKind.NONE


class LiteralDefault(BaseModel):
  """The field defaults to a single shared value."""

  model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

  kind: Literal[DefaultKind.LITERAL] = DefaultKind.LITERAL
  value: Any = Field(None, description="The default value, shared by every instance.")


class FactoryDefault(BaseModel):
  """The field defaults to the result of a zero-argument factory, called per instance."""

  model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

  kind: Literal[DefaultKind.FACTORY] = DefaultKind.FACTORY
  factory: Callable[[], Any] = Field(..., description="Zero-argument producer of a fresh default.")


DefaultSpec = Annotated[Union[NoDefault, LiteralDefault, FactoryDefault], Field(discriminator="kind")]


class FieldSpec(BaseModel):
  """
  One declared field of a record type.
  """

  model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

  name: str = Field(..., description="Identifier, unique within the record type.")
  declared_type: Any = Field(None, description="Opaque type tag. Never interpreted.")
  kind: FieldKind = Field(FieldKind.INSTANCE, description="Instance field, class variable or init-only variable.")
  default: DefaultSpec = Field(default_factory=NoDefault, description="Default value variant.")

  include_in_init: bool = Field(True, description="If True, the field is a constructor parameter.")
  include_in_repr: bool = Field(True, description="If True, the field appears in the generated repr.")
  include_in_compare: bool = Field(True, description="If True, the field takes part in equality and ordering.")
  include_in_hash: Optional[bool] = Field(
    None, description="If None, follows include_in_compare. Otherwise forces inclusion in the hash."
  )

  metadata: Mapping[str, Any] = Field(
    default_factory=dict,
    validate_default=True,
    description="Caller data, ignored by the generator. Read-only after validation.",
  )
  order: int = Field(0, description="Position within the merged field sequence.")

  @field_validator("metadata")
  @classmethod
  def freeze_metadata(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
    """Copies the mapping into a read-only view."""
    return MappingProxyType(dict(v))

  @property
  def has_default(self) -> bool:
    """True if the field has either a literal default or a default factory."""
    return self.default.kind != DefaultKind.NONE

  @property
  def has_factory(self) -> bool:
    """True if the default is produced by a factory."""
    return self.default.kind == DefaultKind.FACTORY

  @property
  def hash_included(self) -> bool:
    """
    Resolves the tri-state hash inclusion flag.

    Returns:
        bool: ``include_in_hash`` if set, otherwise ``include_in_compare``.
    """
    if self.include_in_hash is None:
      return self.include_in_compare
    return self.include_in_hash


class GenerationOptions(BaseModel):
  """
  Selects which behaviors are synthesized for a record type.
  """

  model_config = ConfigDict(frozen=True)

  generate_init: bool = Field(True, description="Generate __init__.")
  generate_repr: bool = Field(True, description="Generate __repr__.")
  generate_compare: bool = Field(True, description="Generate equality and ordering methods.")
  generate_hash: Optional[bool] = Field(
    None, description="True/False force hashing on/off. None derives it from compare and frozen."
  )
  frozen: bool = Field(False, description="Reject attribute assignment and deletion after construction.")


class RecordTypeDescriptor(BaseModel):
  """
  The merged, resolved and immutable view of a record type.

  ``declared_fields`` holds every field kind in merged declaration order; the
  properties below expose the filtered views used by each behavior generator.
  """

  model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

  name: str = Field(..., description="Name of the record type.")
  options: GenerationOptions = Field(default_factory=GenerationOptions)
  bases: Tuple["RecordTypeDescriptor", ...] = Field(default=(), description="Direct record ancestors.")
  own_fields: Tuple[FieldSpec, ...] = Field(default=(), description="Fields declared by this type itself.")
  declared_fields: Tuple[FieldSpec, ...] = Field(default=(), description="Merged fields including ancestors.")

  @property
  def fields(self) -> Tuple[FieldSpec, ...]:
    """Instance fields in order. Class and init-only variables are excluded."""
    return tuple(f for f in self.declared_fields if f.kind == FieldKind.INSTANCE)

  @property
  def class_var_fields(self) -> Tuple[FieldSpec, ...]:
    """Class-scoped constants, kept only as plain class attributes."""
    return tuple(f for f in self.declared_fields if f.kind == FieldKind.CLASS_VAR)

  @property
  def init_var_fields(self) -> Tuple[FieldSpec, ...]:
    """Init-only variables forwarded to ``__post_init__``."""
    return tuple(f for f in self.declared_fields if f.kind == FieldKind.INIT_VAR)

  @property
  def init_fields(self) -> Tuple[FieldSpec, ...]:
    """Constructor parameters in signature order (instance fields and init-only variables)."""
    return tuple(f for f in self.declared_fields if f.kind != FieldKind.CLASS_VAR and f.include_in_init)

  @property
  def repr_fields(self) -> Tuple[FieldSpec, ...]:
    return tuple(f for f in self.fields if f.include_in_repr)

  @property
  def compare_fields(self) -> Tuple[FieldSpec, ...]:
    return tuple(f for f in self.fields if f.include_in_compare)

  @property
  def hash_fields(self) -> Tuple[FieldSpec, ...]:
    return tuple(f for f in self.fields if f.hash_included)

  @property
  def field_names(self) -> Tuple[str, ...]:
    return tuple(f.name for f in self.fields)

  @property
  def frozen(self) -> bool:
    return self.options.frozen

  def get_field(self, name: str) -> Optional[FieldSpec]:
    """
    Looks up a declared field of any kind by name.

    Args:
        name (str): The field name.

    Returns:
        Optional[FieldSpec]: The field, or None if not declared.
    """
    for spec in self.declared_fields:
      if spec.name == name:
        return spec
    return None

  @property
  def hash_action(self) -> HashAction:
    """
    Resolves the hashing policy matrix.

    - ``generate_hash=True``: always generate.
    - ``generate_hash=False``: always disable.
    - ``generate_hash=None``: generate if compare and frozen, disable if
      compare but mutable, inherit if compare is off.

    Returns:
        HashAction: The resolved action.
    """
    opts = self.options
    if opts.generate_hash is True:
      return HashAction.GENERATE
    if opts.generate_hash is False:
      return HashAction.DISABLE
    if not opts.generate_compare:
      return HashAction.INHERIT
    return HashAction.GENERATE if opts.frozen else HashAction.DISABLE


RecordTypeDescriptor.model_rebuild()
