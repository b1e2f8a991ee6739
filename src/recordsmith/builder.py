"""
Record Descriptor Builder.

Turns an explicit, ordered list of raw field declarations plus the resolved
ancestor descriptors and generation options into a `RecordTypeDescriptor`.

Pipeline:
1.  **Declaration checks**: names, default/factory exclusivity, mutable
    literal defaults, kind-specific restrictions.
2.  **Linearization**: ancestors are ordered with C3 (most-derived first).
3.  **Merge**: ancestors are walked most-base to most-derived collecting their
    own fields; a redeclared name replaces the earlier entry in place.
4.  **Ordering check**: among init parameters, a field without a default may
    not follow one with a default.

Every failure raises `ConfigurationError`; nothing here runs at instance
construction time.
"""

import keyword
from collections import abc
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.markup import escape

from recordsmith.compiler.materialize import materialize, record_bases_of
from recordsmith.config import RecordConfig
from recordsmith.enums import FieldKind
from recordsmith.errors import ConfigurationError
from recordsmith.schema import (
  DefaultSpec,
  FactoryDefault,
  FieldSpec,
  GenerationOptions,
  LiteralDefault,
  NoDefault,
  RecordTypeDescriptor,
)
from recordsmith.utils.console import log_debug, log_warning

RESERVED_PREFIX = "__record_"

_MUTABLE_DEFAULT_KINDS = (abc.MutableSequence, abc.MutableMapping, abc.MutableSet)


class _Missing:
  """Marks an argument of `field()` that the caller did not supply."""

  def __repr__(self) -> str:
    return "MISSING"


MISSING: Any = _Missing()


class FieldDeclaration(BaseModel):
  """
  A raw, unvalidated field declaration as written by the caller.

  Unlike `FieldSpec`, a declaration may carry both a literal default and a
  factory; the builder rejects that combination.
  """

  model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

  name: Optional[str] = None
  declared_type: Any = None
  kind: FieldKind = FieldKind.INSTANCE
  literal: Optional[LiteralDefault] = None
  factory: Any = None
  init: bool = True
  repr: bool = True
  compare: bool = True
  hash: Optional[bool] = None
  metadata: Dict[str, Any] = Field(default_factory=dict)

  def named(self, name: str, declared_type: Any = None) -> "FieldDeclaration":
    """
    Returns a copy bound to a name (and optionally a type).

    Args:
        name (str): Field name.
        declared_type (Any): Type tag; kept from the declaration if None.

    Returns:
        FieldDeclaration: The bound declaration.
    """
    update: Dict[str, Any] = {"name": name}
    if declared_type is not None:
      update["declared_type"] = declared_type
    return self.model_copy(update=update)


def field(
  name: Optional[str] = None,
  declared_type: Any = None,
  *,
  default: Any = MISSING,
  default_factory: Any = MISSING,
  init: bool = True,
  repr: bool = True,
  compare: bool = True,
  hash: Optional[bool] = None,
  kind: FieldKind = FieldKind.INSTANCE,
  metadata: Optional[Mapping[str, Any]] = None,
) -> FieldDeclaration:
  """
  Declares one field.

  Args:
      name (Optional[str]): Field name. May be omitted when the declaration is
          passed as the third item of a ``(name, type, declaration)`` tuple.
      declared_type (Any): Opaque type tag.
      default (Any): Literal default value.
      default_factory (Any): Zero-argument callable producing the default.
      init (bool): Include as a constructor parameter.
      repr (bool): Include in the generated repr.
      compare (bool): Include in equality and ordering.
      hash (Optional[bool]): Include in the hash; None follows ``compare``.
      kind (FieldKind): Instance field, class variable or init-only variable.
      metadata (Optional[Mapping]): Caller data carried on the resolved field.

  Returns:
      FieldDeclaration: The raw declaration, validated later by the builder.
  """
  return FieldDeclaration(
    name=name,
    declared_type=declared_type,
    kind=kind,
    literal=None if default is MISSING else LiteralDefault(value=default),
    factory=None if default_factory is MISSING else default_factory,
    init=init,
    repr=repr,
    compare=compare,
    hash=hash,
    metadata=dict(metadata or {}),
  )


DeclarationLike = Union[str, FieldDeclaration, Tuple[Any, ...]]


def normalize_declaration(raw: DeclarationLike) -> FieldDeclaration:
  """
  Coerces the accepted declaration shapes into a `FieldDeclaration`.

  Accepted shapes: a bare name, ``(name, type)``, ``(name, type, declaration)``
  and a named `FieldDeclaration`.

  Args:
      raw (DeclarationLike): The caller's declaration.

  Returns:
      FieldDeclaration: The normalized declaration.

  Raises:
      ConfigurationError: If the shape is not recognized or the name is missing.
  """
  try:
    if isinstance(raw, FieldDeclaration):
      decl = raw
    elif isinstance(raw, str):
      decl = FieldDeclaration(name=raw)
    elif isinstance(raw, tuple) and len(raw) == 2:
      decl = FieldDeclaration(name=raw[0], declared_type=raw[1])
    elif isinstance(raw, tuple) and len(raw) == 3 and isinstance(raw[2], FieldDeclaration):
      decl = raw[2].named(raw[0], raw[1])
    else:
      raise ConfigurationError(f"Invalid field declaration: {raw!r}")
  except ValidationError as e:
    raise ConfigurationError(f"Invalid field declaration {raw!r}: {e}") from e

  if not decl.name:
    raise ConfigurationError(f"Field declaration has no name: {decl!r}")
  return decl


def _check_name(name: str, record_name: str) -> None:
  if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
    raise ConfigurationError(f"{record_name}: field name {name!r} is not a valid identifier")
  if name.startswith(RESERVED_PREFIX):
    raise ConfigurationError(f"{record_name}: field name {name!r} uses the reserved prefix {RESERVED_PREFIX!r}")


def resolve_declaration(decl: FieldDeclaration, record_name: str) -> FieldSpec:
  """
  Validates one declaration and converts it into a `FieldSpec`.

  Args:
      decl (FieldDeclaration): The normalized declaration.
      record_name (str): Owning record, used in error messages.

  Returns:
      FieldSpec: The resolved field (``order`` is assigned during the merge).

  Raises:
      ConfigurationError: On any invalid combination.
  """
  name = decl.name
  _check_name(name, record_name)

  if decl.literal is not None and decl.factory is not None:
    raise ConfigurationError(f"{record_name}.{name}: cannot specify both default and default_factory")

  if decl.factory is not None and not callable(decl.factory):
    raise ConfigurationError(f"{record_name}.{name}: default_factory must be callable")

  default: DefaultSpec = NoDefault()
  if decl.literal is not None:
    if isinstance(decl.literal.value, _MUTABLE_DEFAULT_KINDS):
      raise ConfigurationError(
        f"{record_name}.{name}: mutable default {type(decl.literal.value).__name__} is not allowed, "
        "use default_factory"
      )
    default = decl.literal
  elif decl.factory is not None:
    default = FactoryDefault(factory=decl.factory)

  if decl.kind == FieldKind.CLASS_VAR and decl.factory is not None:
    raise ConfigurationError(f"{record_name}.{name}: class variables cannot use default_factory")

  if decl.kind == FieldKind.INIT_VAR:
    if decl.factory is not None:
      raise ConfigurationError(f"{record_name}.{name}: init-only variables cannot use default_factory")
    if not decl.init:
      raise ConfigurationError(f"{record_name}.{name}: init-only variables must be constructor parameters")

  return FieldSpec(
    name=name,
    declared_type=decl.declared_type,
    kind=decl.kind,
    default=default,
    include_in_init=decl.init,
    include_in_repr=decl.repr,
    include_in_compare=decl.compare,
    include_in_hash=decl.hash,
    metadata=decl.metadata,
  )


def linearize(bases: Sequence[RecordTypeDescriptor]) -> List[RecordTypeDescriptor]:
  """
  Computes the C3 linearization of the ancestors of a record with these direct bases.

  The record itself is not part of the result.

  Args:
      bases (Sequence[RecordTypeDescriptor]): Direct record ancestors, in declaration order.

  Returns:
      List[RecordTypeDescriptor]: Ancestors, most-derived first.

  Raises:
      ConfigurationError: If no consistent order exists.
  """
  sequences = [[base, *linearize(base.bases)] for base in bases]
  sequences.append(list(bases))
  result: List[RecordTypeDescriptor] = []

  while True:
    sequences = [seq for seq in sequences if seq]
    if not sequences:
      return result

    for seq in sequences:
      head = seq[0]
      if not any(head is other for s in sequences for other in s[1:]):
        break
    else:
      names = [seq[0].name for seq in sequences]
      raise ConfigurationError(f"Cannot create a consistent record hierarchy for bases {names}")

    result.append(head)
    for seq in sequences:
      if seq[0] is head:
        del seq[0]


def merge_fields(
  record_name: str, ancestors: Sequence[RecordTypeDescriptor], own: Sequence[FieldSpec]
) -> Tuple[FieldSpec, ...]:
  """
  Merges ancestor fields with the record's own fields.

  Ancestors are walked most-base first. A redeclared name keeps the position
  of its first occurrence and takes the specification of the latest one.

  Args:
      record_name (str): Record being built, used in error messages.
      ancestors (Sequence[RecordTypeDescriptor]): Linearized ancestors, most-derived first.
      own (Sequence[FieldSpec]): The record's own resolved fields.

  Returns:
      Tuple[FieldSpec, ...]: The merged fields with ``order`` set.

  Raises:
      ConfigurationError: If an override switches between class variable and non-class-variable.
  """
  merged: Dict[str, FieldSpec] = {}
  levels = [ancestor.own_fields for ancestor in reversed(ancestors)]
  levels.append(tuple(own))

  for level in levels:
    for spec in level:
      previous = merged.get(spec.name)
      if previous is not None and (previous.kind == FieldKind.CLASS_VAR) != (spec.kind == FieldKind.CLASS_VAR):
        raise ConfigurationError(
          f"{record_name}.{spec.name}: cannot redeclare a {previous.kind.value} field as {spec.kind.value}"
        )
      merged[spec.name] = spec

  return tuple(spec.model_copy(update={"order": i}) for i, spec in enumerate(merged.values()))


def _check_init_order(record_name: str, specs: Iterable[FieldSpec]) -> None:
  seen_default: Optional[FieldSpec] = None
  for spec in specs:
    if spec.kind == FieldKind.CLASS_VAR or not spec.include_in_init:
      continue
    if spec.has_default:
      seen_default = spec
    elif seen_default is not None:
      raise ConfigurationError(
        f"{record_name}: non-default argument {spec.name!r} follows default argument {seen_default.name!r}"
      )


def _check_frozen_inheritance(record_name: str, options: GenerationOptions, bases: Sequence[RecordTypeDescriptor]) -> None:
  for base in bases:
    if base.frozen and not options.frozen:
      raise ConfigurationError(f"{record_name}: cannot inherit non-frozen record from frozen record {base.name}")
    if options.frozen and not base.frozen:
      raise ConfigurationError(f"{record_name}: cannot inherit frozen record from non-frozen record {base.name}")


def build_descriptor(
  name: str,
  declarations: Iterable[DeclarationLike] = (),
  bases: Sequence[RecordTypeDescriptor] = (),
  options: Optional[GenerationOptions] = None,
) -> RecordTypeDescriptor:
  """
  Builds the resolved descriptor of a record type.

  Args:
      name (str): Record type name.
      declarations (Iterable[DeclarationLike]): Own field declarations, in order.
      bases (Sequence[RecordTypeDescriptor]): Direct record ancestors.
      options (Optional[GenerationOptions]): Generation options. Defaults to
          all behaviors enabled, not frozen, hash derived.

  Returns:
      RecordTypeDescriptor: The immutable descriptor.

  Raises:
      ConfigurationError: If the declarations or hierarchy are invalid.
  """
  if not isinstance(name, str) or not name.isidentifier():
    raise ConfigurationError(f"Record name {name!r} is not a valid identifier")

  options = options or GenerationOptions()
  try:
    own: List[FieldSpec] = []
    seen = set()
    for raw in declarations:
      spec = resolve_declaration(normalize_declaration(raw), name)
      if spec.name in seen:
        raise ConfigurationError(f"{name}: duplicate field {spec.name!r}")
      seen.add(spec.name)
      own.append(spec)

    _check_frozen_inheritance(name, options, bases)
    ancestors = linearize(bases)
    merged = merge_fields(name, ancestors, own)
    _check_init_order(name, merged)
  except ConfigurationError as e:
    log_debug(f"Rejected record [record]{escape(name)}[/record]: {escape(str(e))}")
    raise

  by_name = {spec.name: spec for spec in merged}
  own_resolved = tuple(by_name[spec.name] for spec in own)
  descriptor = RecordTypeDescriptor(
    name=name,
    options=options,
    bases=tuple(bases),
    own_fields=own_resolved,
    declared_fields=merged,
  )

  if options.generate_hash is True and not options.frozen:
    log_warning(f"Record [record]{escape(name)}[/record] is hashable but mutable")
  log_debug(
    f"Built record [record]{escape(name)}[/record] fields={list(descriptor.field_names)} "
    f"hash={descriptor.hash_action.value}"
  )
  return descriptor


class RecordBuilder:
  """
  Fluent front-end over `build_descriptor`.

  Example::

      point = RecordBuilder("Point").field("x", int, default=0).field("y", int, default=0).build_type()
  """

  def __init__(
    self,
    name: str,
    bases: Sequence[Any] = (),
    options: Optional[GenerationOptions] = None,
    config: Optional[RecordConfig] = None,
  ) -> None:
    """
    Initializes the builder.

    Args:
        name (str): Record type name.
        bases (Sequence[Any]): Direct bases: descriptors, record classes or plain
            classes. Plain subclasses of records contribute the records they
            extend. `build_type` does not accept descriptors.
        options (Optional[GenerationOptions]): Explicit options. Wins over ``config``.
        config (Optional[RecordConfig]): Source of default options.
    """
    self.name = name
    self.bases = tuple(bases)
    self._declarations: List[FieldDeclaration] = []
    if options is None:
      options = config.default_options() if config else GenerationOptions()
    self._options = options
    self._config = config

  def field(self, name: str, declared_type: Any = None, **kwargs: Any) -> "RecordBuilder":
    """Appends an instance field. Keyword arguments are those of `field()`."""
    self._declarations.append(field(name, declared_type, **kwargs))
    return self

  def class_var(self, name: str, declared_type: Any = None, default: Any = MISSING) -> "RecordBuilder":
    """Appends a class-scoped constant."""
    self._declarations.append(field(name, declared_type, default=default, kind=FieldKind.CLASS_VAR))
    return self

  def init_var(self, name: str, declared_type: Any = None, default: Any = MISSING) -> "RecordBuilder":
    """Appends an init-only variable forwarded to ``__post_init__``."""
    self._declarations.append(field(name, declared_type, default=default, kind=FieldKind.INIT_VAR))
    return self

  def declare(self, *declarations: DeclarationLike) -> "RecordBuilder":
    """Appends declarations in any shape accepted by `normalize_declaration`."""
    self._declarations.extend(normalize_declaration(raw) for raw in declarations)
    return self

  def option(self, **changes: Any) -> "RecordBuilder":
    """
    Overrides generation options (e.g. ``frozen=True``).

    Raises:
        ConfigurationError: If an option name is unknown.
    """
    unknown = set(changes) - set(GenerationOptions.model_fields)
    if unknown:
      raise ConfigurationError(f"Unknown generation options: {sorted(unknown)}")
    try:
      self._options = GenerationOptions(**{**self._options.model_dump(), **changes})
    except ValidationError as e:
      raise ConfigurationError(f"{self.name}: invalid generation options: {e}") from e
    return self

  @property
  def options(self) -> GenerationOptions:
    return self._options

  def _record_bases(self) -> Tuple[RecordTypeDescriptor, ...]:
    return record_bases_of(self.bases)

  def build(self) -> RecordTypeDescriptor:
    """Builds the descriptor."""
    return build_descriptor(self.name, self._declarations, self._record_bases(), self._options)

  def build_type(self, namespace: Optional[Mapping[str, Any]] = None) -> type:
    """
    Builds the descriptor and materializes it as a class.

    Args:
        namespace (Optional[Mapping]): Extra class attributes (e.g. ``__post_init__``).

    Returns:
        type: The new record class.

    Raises:
        ConfigurationError: If a base is a descriptor rather than a class.
    """

    if any(isinstance(base, RecordTypeDescriptor) for base in self.bases):
      raise ConfigurationError(f"{self.name}: build_type() needs classes as bases, not descriptors")
    return materialize(self.build(), bases=self.bases, namespace=namespace, config=self._config)


__all__ = [
  "MISSING",
  "FieldDeclaration",
  "RecordBuilder",
  "build_descriptor",
  "field",
  "linearize",
  "merge_fields",
  "normalize_declaration",
  "resolve_declaration",
]
