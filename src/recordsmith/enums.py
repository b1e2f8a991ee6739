"""
Enumerations for recordsmith.

This module defines the standard enumerations used across the codebase to
classify declared fields, default value variants, and the resolved hashing
policy of a record type.
"""

from enum import Enum


class FieldKind(str, Enum):
  """
  Role of a declared field within a record type.

  Set explicitly at declaration time, never inferred from the declared type.
  """

  INSTANCE = "instance"  # Regular per-instance slot
  CLASS_VAR = "class_var"  # Class-scoped constant, excluded from generated behavior
  INIT_VAR = "init_var"  # Constructor-only parameter forwarded to __post_init__


class DefaultKind(str, Enum):
  """
  Discriminator for the default value variants of a field.
  """

  NONE = "none"
  LITERAL = "literal"
  FACTORY = "factory"


class HashAction(str, Enum):
  """
  Resolved outcome of the hashing policy matrix.
  """

  GENERATE = "generate"  # Synthesize __hash__ from hash-included fields
  DISABLE = "disable"  # Set __hash__ = None (unhashable)
  INHERIT = "inherit"  # Leave __hash__ untouched
