"""
Builtin Name Emitter

Drives one generation pass over a RecordStore:

    collect_overloads -> declarations, signature table, builtin table,
                         name matcher, QualType reconstruction

For a successful lookup of e.g. "cos", isOpenCLBuiltin("cos") returns a
pair <Index, Len>. OpenCLBuiltins[Index] to OpenCLBuiltins[Index + Len]
describe the overloads of "cos"; each one's <ArgTableIndex, NumArgs> selects
its return and argument types in OpenCLSignature. Signature rows are shared
between overloads (and between functions, e.g. "cos" and "sin").

The generated text is assembled in memory; nothing is returned unless every
stage succeeded.
"""

import io
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from builtin_nodes import RecordError, RecordStore, is_c_identifier
from emitter.overloads import OverloadInfo, SignatureSet, collect_overloads
from emitter.string_matcher import NameDispatcher
from emitter.tables import TablesGenerator
from emitter.types import LLVMTypeFinder, QualTypeGenerator

BANNER_WIDTH = 80
TITLE_WIDTH = BANNER_WIDTH - 6  # "|* " + title + " *|"


@dataclass
class EmitterConfig:
    """Spellings used in the generated file; [emitter] in the database overrides them."""
    title: str = "OpenCL Builtin handling"
    type_prefix: str = "OCLT_"
    type_enum: str = "OpenCLTypeID"
    type_struct: str = "OpenCLType"
    decl_struct: str = "OpenCLBuiltinDecl"
    signature_table: str = "OpenCLSignature"
    builtin_table: str = "OpenCLBuiltins"
    lookup_function: str = "isOpenCLBuiltin"
    qual_type_function: str = "OCL2Qual"

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, str) or not value:
                raise RecordError(f"emitter.{f.name} must be a non-empty string")
            if f.name == "title":
                if len(value) > TITLE_WIDTH:
                    raise RecordError(
                        f"emitter.title is {len(value)} characters; "
                        f"at most {TITLE_WIDTH} fit in the banner"
                    )
                if not value.isprintable() or not value.isascii() or "*/" in value:
                    raise RecordError(f"emitter.title {value!r} cannot go in a C comment")
            elif not is_c_identifier(value):
                raise RecordError(f"emitter.{f.name} {value!r} is not a C identifier")

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> 'EmitterConfig':
        known = {f.name for f in fields(cls)}
        for key in options:
            if key not in known:
                raise RecordError(f"Unknown emitter option '{key}'")
        return cls(**options)


def source_file_header(title: str) -> str:
    """Banner marking the output as generated"""
    width = BANNER_WIDTH
    head = "/*===- Generated file "
    tail = "*- C++ -*-===*\\"
    lines = [head + "-" * (width - len(head) - len(tail)) + tail]
    for text in ("", title, "", "Automatically generated file, do not edit!", ""):
        lines.append("|* " + text.ljust(TITLE_WIDTH) + " *|")
    lines.append("\\*===" + "-" * (width - 10) + "===*/")
    return "\n".join(lines) + "\n\n"


class BuiltinNameEmitter:
    """Generates the builtin tables, name matcher and type reconstruction."""

    def __init__(self, records: RecordStore, config: Optional[EmitterConfig] = None):
        self.records = records
        self.config = config or EmitterConfig.from_options(records.options)
        self.out = io.StringIO()

        self.signatures: Optional[SignatureSet] = None
        self.overloads: Optional[OverloadInfo] = None
        self.dispatcher: Optional[NameDispatcher] = None

        self.tables = TablesGenerator(self)
        self.qual_types = QualTypeGenerator(self)

    def collect(self):
        """Intern signatures, group overloads and build the name dispatcher."""
        self.signatures, self.overloads = collect_overloads(self.records.builtins)
        self.dispatcher = NameDispatcher(self.overloads)

    def emit(self) -> str:
        """Run the whole pass and return the generated C++ text."""
        self.collect()

        self.out = io.StringIO()
        self.out.write(source_file_header(self.config.title))
        self.out.write("#include \"llvm/ADT/StringRef.h\"\n")
        self.out.write("#include \"llvm/Support/ErrorHandling.h\"\n")
        self.out.write("using namespace clang;\n\n")

        self.tables.emit_declarations()
        self.tables.emit_signature_table()
        self.tables.emit_builtin_table()
        self.dispatcher.emit_function(self.out, self.config.lookup_function)
        self.qual_types.emit_qual_type_finder()
        return self.out.getvalue()

    def llvm_types(self) -> LLVMTypeFinder:
        return LLVMTypeFinder(self.records.types)

    def lookup(self, name: str):
        """(start, count) of name in the builtin table; (0, 0) if unknown"""
        if self.dispatcher is None:
            self.collect()
        return self.dispatcher.lookup(name)

    def stats(self) -> Dict[str, int]:
        if self.overloads is None:
            self.collect()
        return {
            "type_names": len(self.records.type_names()),
            "builtin_names": len(self.overloads),
            "overloads": self.overloads.overload_count(),
            "signatures": len(self.signatures),
            "signature_rows": self.signatures.total,
        }
