"""
Behavior Compiler.

Collects the operations built by `recordsmith.compiler.operations` into a
`RecordBehaviors` bundle: plain functions keyed by the dunder name they
implement, plus the resolved hashing action and the source rendered by
`RecordSynthesizer` for inspection.
"""

from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from rich.markup import escape

from recordsmith.compiler.operations import build_operations
from recordsmith.compiler.synthesizer import RecordSynthesizer
from recordsmith.config import RecordConfig
from recordsmith.enums import HashAction
from recordsmith.schema import RecordTypeDescriptor
from recordsmith.utils.console import log_debug


class RecordBehaviors(BaseModel):
  """
  Bundle of generated operations for one record type.
  """

  model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

  descriptor: RecordTypeDescriptor
  methods: Dict[str, Callable[..., Any]] = Field(default_factory=dict, description="Dunder name -> function.")
  hash_action: HashAction = Field(HashAction.INHERIT, description="Resolved hashing policy.")
  source: str = Field("", description="Rendered Python source of the operations, for inspection.")

  def get(self, name: str) -> Optional[Callable[..., Any]]:
    """Returns the generated function for a dunder name, or None if not generated."""
    return self.methods.get(name)

  @property
  def construct(self) -> Optional[Callable[..., Any]]:
    return self.methods.get("__init__")

  @property
  def represent(self) -> Optional[Callable[..., Any]]:
    return self.methods.get("__repr__")

  @property
  def equals(self) -> Optional[Callable[..., Any]]:
    return self.methods.get("__eq__")

  @property
  def hasher(self) -> Optional[Callable[..., Any]]:
    return self.methods.get("__hash__")

  def namespace(self) -> Dict[str, Any]:
    """
    Renders the bundle as class attributes.

    A disabled hash is expressed as ``__hash__ = None``; an inherited hash is
    left out entirely.

    Returns:
        Dict[str, Any]: Attributes to place in the class namespace.
    """
    attrs: Dict[str, Any] = dict(self.methods)
    if self.hash_action == HashAction.DISABLE:
      attrs["__hash__"] = None
    return attrs


class RecordCompiler:
  """
  Turns a descriptor into a `RecordBehaviors` bundle.
  """

  def __init__(self, config: Optional[RecordConfig] = None) -> None:
    self.config = config or RecordConfig()

  def compile(
    self, descriptor: RecordTypeDescriptor, has_post_init: bool = False, module: Optional[str] = None
  ) -> RecordBehaviors:
    """
    Builds the operations and renders their source.

    Args:
        descriptor (RecordTypeDescriptor): The resolved record type.
        has_post_init (bool): Whether the constructor must call ``__post_init__``.
        module (Optional[str]): ``__module__`` given to each operation, normally the record's module.

    Returns:
        RecordBehaviors: The compiled bundle.
    """
    source = RecordSynthesizer(descriptor, has_post_init=has_post_init).build_module().code

    if self.config.log_generated_source:
      log_debug(f"Generated source for [record]{escape(descriptor.name)}[/record]:\n{escape(source)}")

    methods = build_operations(descriptor, has_post_init=has_post_init)
    for name, func in methods.items():
      func.__qualname__ = f"{descriptor.name}.{name}"
      if module is not None:
        func.__module__ = module

    return RecordBehaviors(
      descriptor=descriptor,
      methods=methods,
      hash_action=descriptor.hash_action,
      source=source,
    )


def compile_behaviors(
  descriptor: RecordTypeDescriptor,
  has_post_init: bool = False,
  config: Optional[RecordConfig] = None,
  module: Optional[str] = None,
) -> RecordBehaviors:
  """Convenience wrapper around `RecordCompiler.compile`."""
  return RecordCompiler(config).compile(descriptor, has_post_init=has_post_init, module=module)
