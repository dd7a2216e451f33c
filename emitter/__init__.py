"""
OpenCL Builtin Emitter Package

Generates the builtin lookup tables consumed by the OpenCL frontend.

    emitter/
    ├── __init__.py        # public entry points (this file)
    ├── core.py            # BuiltinNameEmitter, EmitterConfig
    ├── overloads.py       # signature interning, overload grouping
    ├── tables.py          # enum, structs, signature and builtin tables
    ├── string_matcher.py  # name -> (index, count) dispatcher
    └── types.py           # QualType / llvmlite type reconstruction
"""

from emitter.core import BuiltinNameEmitter, EmitterConfig
from emitter.overloads import OverloadInfo, SignatureSet, collect_overloads
from emitter.string_matcher import NameDispatcher, StringMatcher
from emitter.types import LLVMTypeFinder


def emit_opencl_builtins(records, config=None) -> str:
    """Generate the builtin include file text for a RecordStore"""
    return BuiltinNameEmitter(records, config).emit()


__all__ = [
    'BuiltinNameEmitter', 'EmitterConfig', 'OverloadInfo', 'SignatureSet',
    'collect_overloads', 'NameDispatcher', 'StringMatcher', 'LLVMTypeFinder',
    'emit_opencl_builtins',
]
