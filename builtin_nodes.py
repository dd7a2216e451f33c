"""
OpenCL Builtin Record Definitions

In-memory record store for the builtin generator: type records, builtin
overload declarations and the error hierarchy shared by every stage.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


# ============================================================================
# Errors
# ============================================================================

class EmitError(Exception):
    """Base exception for builtin table generation errors"""
    pass


class RecordError(EmitError):
    """Malformed or inconsistent input record"""
    pass


class AbstractTypeError(EmitError):
    """An abstract type was reached where a concrete type is required"""
    pass


class MatcherError(EmitError):
    """The name dispatcher cannot be built from the given names"""
    pass


# ============================================================================
# Enums
# ============================================================================

class AddrSpace(Enum):
    """OpenCL address spaces: (clang spelling, SPIR address space number)"""
    DEFAULT = ("clang::LangAS::Default", 0)
    GLOBAL = ("clang::LangAS::opencl_global", 1)
    CONSTANT = ("clang::LangAS::opencl_constant", 2)
    LOCAL = ("clang::LangAS::opencl_local", 3)
    GENERIC = ("clang::LangAS::opencl_generic", 4)
    PRIVATE = ("clang::LangAS::opencl_private", 0)

    @property
    def spelling(self) -> str:
        return self.value[0]

    @property
    def llvm_addrspace(self) -> int:
        return self.value[1]

    @classmethod
    def parse(cls, text: str) -> 'AddrSpace':
        """Accept 'global', 'opencl_global' or 'clang::LangAS::opencl_global'."""
        if not isinstance(text, str):
            raise RecordError(f"Address space must be a string, got {text!r}")
        key = text.rsplit("::", 1)[-1].lower()
        if key.startswith("opencl_"):
            key = key[len("opencl_"):]
        for space in cls:
            if space.name.lower() == key:
                return space
        raise RecordError(f"Unknown address space '{text}'")


# Versions known without a [versions] table
DEFAULT_VERSIONS = {
    "CL10": 100,
    "CL11": 110,
    "CL12": 120,
    "CL20": 200,
}

# Names pasted into the generated C++ as identifiers
C_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


def is_c_identifier(text) -> bool:
    return isinstance(text, str) and C_IDENTIFIER.match(text) is not None


# ============================================================================
# Records
# ============================================================================

@dataclass(frozen=True)
class TypeRecord:
    """
    One type record, used both as a type definition and as a signature slot.

    Several records may share a name (float, float4, global float*); they
    share one type-ID tag. record_id is unique, so structural equality of two
    records is record identity.
    """
    record_id: str
    name: str
    qual_type: Optional[str] = None  # ASTContext member, e.g. "FloatTy"
    vec_width: int = 0
    addr_space: AddrSpace = AddrSpace.DEFAULT
    is_pointer: bool = False

    def __post_init__(self):
        if not is_c_identifier(self.name):
            raise RecordError(f"Type name {self.name!r} is not a C identifier")

    @property
    def is_abstract(self) -> bool:
        return self.qual_type is None

    def __repr__(self):
        text = self.name
        if self.vec_width:
            text += str(self.vec_width)
        if self.is_pointer:
            if self.addr_space is not AddrSpace.DEFAULT:
                text = f"{self.addr_space.name.lower()} {text}"
            text += "*"
        return text


Signature = Tuple[TypeRecord, ...]


@dataclass(frozen=True)
class Builtin:
    """One overload of a builtin function: return type first in signature."""
    name: str
    signature: Signature
    version: int
    extension: str = ""

    def __post_init__(self):
        if not self.name:
            raise RecordError("Builtin without a name")
        if not is_c_identifier(self.name):
            raise RecordError(f"Builtin name {self.name!r} is not a C identifier")
        if not isinstance(self.version, int) or isinstance(self.version, bool):
            raise RecordError(f"Builtin '{self.name}': version must be an integer")
        if not isinstance(self.extension, str):
            raise RecordError(f"Builtin '{self.name}': extension must be a string")
        if not self.signature:
            raise RecordError(f"Builtin '{self.name}' has an empty signature")
        object.__setattr__(self, 'signature', tuple(self.signature))

    @property
    def num_args(self) -> int:
        """Signature length, including the return type"""
        return len(self.signature)

    def __repr__(self):
        ret, args = self.signature[0], self.signature[1:]
        params = ", ".join(repr(a) for a in args)
        return f"{ret!r} {self.name}({params})"


@dataclass
class RecordStore:
    """All records of one input database, in declaration order."""
    types: List[TypeRecord] = field(default_factory=list)
    builtins: List[Builtin] = field(default_factory=list)
    options: dict = field(default_factory=dict)  # raw [emitter] overrides

    def type_names(self) -> List[str]:
        """Distinct type names, first-seen order"""
        return [record.name for record in self.first_of_each_name()]

    def first_of_each_name(self) -> List[TypeRecord]:
        """The first record declared under each type name"""
        firsts = {}
        for record in self.types:
            firsts.setdefault(record.name, record)
        return list(firsts.values())
