"""
Compiler Package.

Turns a resolved `RecordTypeDescriptor` into generated behavior: the runtime
operations, their LibCST source rendering, the `RecordBehaviors` bundle, and
materialization of the final class.
"""

from recordsmith.compiler.behaviors import RecordBehaviors, RecordCompiler, compile_behaviors
from recordsmith.compiler.materialize import materialize, record_bases_of
from recordsmith.compiler.operations import build_operations
from recordsmith.compiler.synthesizer import RecordSynthesizer

__all__ = [
  "RecordBehaviors",
  "RecordCompiler",
  "RecordSynthesizer",
  "build_operations",
  "compile_behaviors",
  "materialize",
  "record_bases_of",
]
