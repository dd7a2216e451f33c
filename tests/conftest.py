"""
Pytest configuration and fixtures for the builtin generator tests.

Provides reusable fixtures for:
- Building type records and record stores in memory
- Running the oclgen.py driver on a database file
"""

import pytest
import subprocess
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from builtin_nodes import AddrSpace, Builtin, RecordStore, TypeRecord


class GeneratorResult:
    """Result of running the generator driver."""

    def __init__(self, success: bool, stdout: str, stderr: str):
        self.success = success
        self.stdout = stdout
        self.stderr = stderr


@pytest.fixture
def generator_root():
    """Path to generator root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sample_database(generator_root):
    """Path to the shipped OpenCL C builtin database."""
    return generator_root / "databases" / "opencl_c.toml"


@pytest.fixture
def run_oclgen(generator_root):
    """
    Fixture that returns a function running oclgen.py with arguments.

    Usage:
        result = run_oclgen(str(database), "--lookup", "cos")
        assert result.success
        assert "2 overload(s)" in result.stdout
    """
    def _run(*args) -> GeneratorResult:
        script = os.path.join(generator_root, "oclgen.py")
        result = subprocess.run(
            [sys.executable, script, *args],
            capture_output=True,
            text=True,
            cwd=generator_root
        )
        return GeneratorResult(result.returncode == 0, result.stdout, result.stderr)

    return _run


@pytest.fixture
def types():
    """Common type records, keyed by record id."""
    records = [
        TypeRecord("float", "float", "FloatTy"),
        TypeRecord("double", "double", "DoubleTy"),
        TypeRecord("int", "int", "IntTy"),
        TypeRecord("uint", "uint", "UnsignedIntTy"),
        TypeRecord("void", "void", "VoidTy"),
        TypeRecord("gentype", "gentype"),
        TypeRecord("float4", "float", "FloatTy", vec_width=4),
        TypeRecord("int4", "int", "IntTy", vec_width=4),
        TypeRecord("global_float_ptr", "float", "FloatTy",
                   addr_space=AddrSpace.GLOBAL, is_pointer=True),
        TypeRecord("local_int_ptr", "int", "IntTy",
                   addr_space=AddrSpace.LOCAL, is_pointer=True),
    ]
    return {record.record_id: record for record in records}


@pytest.fixture
def make_builtin(types):
    """
    Fixture that returns a function building a Builtin from record ids.

    Usage:
        cos = make_builtin("cos", "float", "float")
    """
    def _make(name: str, *sig: str, extension: str = "", version: int = 100) -> Builtin:
        return Builtin(name, tuple(types[s] for s in sig), version, extension)

    return _make


@pytest.fixture
def cos_sin_store(types, make_builtin):
    """cos(float), cos(double), sin(float)"""
    return RecordStore(
        types=[types["float"], types["double"]],
        builtins=[
            make_builtin("cos", "float", "float"),
            make_builtin("cos", "double", "double"),
            make_builtin("sin", "float", "float"),
        ],
    )
