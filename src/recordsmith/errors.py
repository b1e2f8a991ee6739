"""
Error hierarchy for recordsmith.

Two failure families exist and are strictly separated by when they occur:

- :class:`ConfigurationError` is raised while a record descriptor is being
  built (or materialized) from its declarations. It is never raised while
  constructing instances.
- :class:`FrozenInstanceError` is raised only when an instance of a frozen
  record type is mutated after construction.
"""


class RecordError(Exception):
  """Base class for all recordsmith errors."""


class ConfigurationError(RecordError, TypeError):
  """
  Raised when field declarations or generation options are invalid.

  Subclasses ``TypeError`` so callers treating bad class definitions as type
  errors keep working.
  """


class FrozenInstanceError(RecordError, AttributeError):
  """
  Raised when assigning to or deleting an attribute of a frozen record instance.
  """
