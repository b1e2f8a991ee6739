"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Snapshot testing fixture for generated source.
- Console capture fixture routing the package logger into a buffer.
- Logger level isolation so tests changing verbosity do not leak.
"""

import io
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest
from rich.console import Console

# Add src to path so we can import 'recordsmith' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from recordsmith.utils.console import logger, reset_console, set_console  # noqa: E402


class SnapshotAssert:
  """
  Simple snapshot comparison logic to verify generated source stability.
  """

  def __init__(self, request: pytest.FixtureRequest):
    self.request = request
    self.test_name = request.node.name
    self.module_path = Path(request.node.fspath).parent
    self.snapshot_dir = self.module_path / "__snapshots__"
    self.update_mode = request.config.getoption("--update-snapshots", default=False)

  def assert_match(self, content: str, extension: str = "txt", normalizer: Optional[Callable[[str], str]] = None):
    """
    Compares content against stored file. A missing snapshot fails unless
    `--update-snapshots` is given, in which case it is written.

    Args:
        content: The actual output string.
        extension: File extension (default 'txt').
        normalizer: Optional function to clean both content and expected string before comparison.
    """
    snapshot_file = self.snapshot_dir / f"{self.test_name}.{extension}"
    content = content.replace("\r\n", "\n")

    if self.update_mode:
      self.snapshot_dir.mkdir(parents=True, exist_ok=True)
      snapshot_file.write_text(content, encoding="utf-8")
      return

    assert snapshot_file.exists(), (
      f"Missing snapshot {snapshot_file.name}. Run pytest with --update-snapshots to record it."
    )

    expected = snapshot_file.read_text(encoding="utf-8").replace("\r\n", "\n")

    lhs = content
    rhs = expected
    if normalizer:
      lhs = normalizer(lhs)
      rhs = normalizer(rhs)

    assert lhs == rhs, (
      f"Snapshot mismatch for {snapshot_file.name}. Run pytest with --update-snapshots to accept changes."
    )


@pytest.fixture
def snapshot(request):
  """Fixture to assert text matches a stored snapshot."""
  return SnapshotAssert(request)


@pytest.fixture
def captured_console():
  """
  Routes the package logger into an in-memory console at DEBUG level.

  Yields:
      Console: The recording console; read it with ``export_text()``.
  """
  buffer_console = Console(file=io.StringIO(), record=True, width=200)
  set_console(buffer_console)
  logger.setLevel(logging.DEBUG)
  yield buffer_console
  reset_console()


@pytest.fixture(autouse=True)
def isolate_logger_level():
  """
  Ensures that changes to the package logger level do not leak between tests.
  """
  original = logger.level
  yield
  logger.setLevel(original)


def pytest_addoption(parser):
  """Add CLI flag to update snapshots."""
  parser.addoption("--update-snapshots", action="store_true", default=False, help="Update stored snapshots")
