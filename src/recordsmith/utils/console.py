"""
Central Logging and Console Utilities.

This module unifies the library's diagnostic output using the Python standard
`logging` library, backed by `rich` for formatting.

It serves two purposes:
1.  **Standard Logging Integration**: adapter functions (`log_debug`, `log_info`,
    `log_warning`, `log_error`) routing to the ``recordsmith`` logger.
2.  **Environment Injection**: a Proxy around the Rich Console so the output
    destination (stdout, file, or in-memory buffer) can be swapped at runtime
    via `set_console`, e.g. to capture the generated source in tests.

Attributes:
    console (_ConsoleProxy): A global, stable reference to the active Rich Console.
    logger (logging.Logger): The package logger.
"""

import logging
from typing import Any, Union

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOGGER_NAME = "recordsmith"

logger = logging.getLogger(LOGGER_NAME)

_THEME = Theme(
  {
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "record": "bold blue",
    "code": "bold magenta",
  }
)


class _ConsoleProxy:
  """
  A Proxy wrapper around `rich.console.Console`.

  All printing operations are forwarded to the 'backend' Console. When the
  backend changes, the proxy also re-attaches the package logger's handler so
  that log records follow the new destination.

  Attributes:
      _backend (Console): The active Rich Console instance.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=_THEME, stderr=True)
    self._configure_logging()

  def set_backend(self, new_console: Console) -> None:
    """
    Injects a new Console backend and updates logging handlers.

    Args:
        new_console (Console): The new Rich Console instance to use.
    """
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    """Resets the proxy to a fresh standard error console."""
    self._backend = Console(theme=_THEME, stderr=True)
    self._configure_logging()

  @property
  def backend(self) -> Console:
    return self._backend

  def _configure_logging(self) -> None:
    """
    Points the package logger at the current backend console.

    Only the ``recordsmith`` logger is touched; the root logger is left to the
    host application.
    """
    for handler in list(logger.handlers):
      if isinstance(handler, RichHandler):
        logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      omit_repeated_times=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )
    logger.addHandler(rich_handler)
    logger.propagate = False
    if logger.level == logging.NOTSET:
      logger.setLevel(logging.WARNING)

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def export_text(self, **kwargs: Any) -> str:
    """
    Forwards `export_text` (useful for log capturing).

    Args:
        **kwargs: Options passed to console.export_text.

    Returns:
        str: The captured text output.
    """
    return self._backend.export_text(**kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


# Modules import this 'console' object. The underlying implementation
# can be changed via 'set_console'.
console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Global helper to inject a specific console instance.

  Args:
      new_console (Console): The configured Rich console to use globally.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Global helper to reset logging and console to standard error."""
  console.reset()


def get_console() -> Console:
  return console.backend


def set_log_level(level: Union[int, str]) -> None:
  """
  Sets the verbosity of the package logger.

  Args:
      level (Union[int, str]): A logging level number or name (e.g. "DEBUG").
  """
  if isinstance(level, str):
    level = level.upper()
  logger.setLevel(level)


def log_debug(msg: str) -> None:
  """
  Logs a debug message (descriptor creation, generated source).

  Args:
      msg (str): The message content. Can include rich markup like [bold].
  """
  logger.debug(msg, extra={"markup": True})


def log_info(msg: str) -> None:
  """
  Logs an informational message.

  Args:
      msg (str): The message content.
  """
  logger.info(f"ℹ️  {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  """
  Logs a warning message.

  Args:
      msg (str): The message content.
  """
  logger.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  """
  Logs an error message.

  Args:
      msg (str): The message content.
  """
  logger.error(f"❌ {msg}", extra={"markup": True})
