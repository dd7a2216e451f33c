"""
Type Reconstruction

Maps a compact type slot (type ID, vector width, address space, pointer flag)
back to a semantic type:
- QualTypeGenerator: emits the C++ function building a clang QualType
- LLVMTypeFinder: builds the equivalent llvmlite type in-process

Both apply the wrappers in C type-grammar order: vector first, then the
address space, then the pointer (`global float4 *`).
"""

from typing import TYPE_CHECKING, Dict, Iterable, List, Tuple

from llvmlite import ir

from builtin_nodes import AbstractTypeError, Builtin, RecordError, TypeRecord

if TYPE_CHECKING:
    from emitter.core import BuiltinNameEmitter


# ASTContext member -> LLVM type, for the OpenCL C scalar types
QUAL_TYPE_LLVM: Dict[str, ir.Type] = {
    "VoidTy": ir.VoidType(),
    "BoolTy": ir.IntType(1),
    "CharTy": ir.IntType(8),
    "SignedCharTy": ir.IntType(8),
    "UnsignedCharTy": ir.IntType(8),
    "ShortTy": ir.IntType(16),
    "UnsignedShortTy": ir.IntType(16),
    "IntTy": ir.IntType(32),
    "UnsignedIntTy": ir.IntType(32),
    "LongTy": ir.IntType(64),  # OpenCL long is always 64 bits
    "UnsignedLongTy": ir.IntType(64),
    "HalfTy": ir.HalfType(),
    "FloatTy": ir.FloatType(),
    "DoubleTy": ir.DoubleType(),
}


class QualTypeGenerator:
    """Emits the QualType reconstruction function."""

    def __init__(self, emitter: 'BuiltinNameEmitter'):
        self.emitter = emitter

    @property
    def out(self):
        return self.emitter.out

    def emit_qual_type_finder(self):
        cfg = self.emitter.config
        self.out.write(f"""

static QualType {cfg.qual_type_function}(ASTContext &Context, {cfg.type_struct} Ty) {{
  QualType RT;
  switch (Ty.ID) {{
""")
        for record in self.emitter.records.first_of_each_name():
            # Abstract types never reach a signature; collection rejects them.
            if record.is_abstract:
                continue
            self.out.write(f"  case {cfg.type_prefix}{record.name}:\n")
            self.out.write(f"    RT = Context.{record.qual_type};\n")
            self.out.write("    break;\n")
        self.out.write("""  default:
    llvm_unreachable("abstract type in a builtin signature");
  }

  if (Ty.VectorWidth > 0)
    RT = Context.getExtVectorType(RT, Ty.VectorWidth);

  if (Ty.isPointer) {
    RT = Context.getAddrSpaceQualType(RT, Ty.AS);
    RT = Context.getPointerType(RT);
  }

  return RT;
}
""")


class LLVMTypeFinder:
    """
    Reconstructs llvmlite types from type records.

    Base types come from the first record of each type name; abstract names
    have no base type. Names whose qual_type has no LLVM equivalent are only
    reported when actually reconstructed.
    """

    def __init__(self, types: Iterable[TypeRecord]):
        self.base_types: Dict[str, ir.Type] = {}
        self.abstract: Dict[str, TypeRecord] = {}
        self.unmapped: Dict[str, str] = {}
        firsts: Dict[str, TypeRecord] = {}
        for record in types:
            firsts.setdefault(record.name, record)
        for name, record in firsts.items():
            if record.is_abstract:
                self.abstract[name] = record
            elif record.qual_type in QUAL_TYPE_LLVM:
                self.base_types[name] = QUAL_TYPE_LLVM[record.qual_type]
            else:
                self.unmapped[name] = record.qual_type

    def base_type(self, name: str) -> ir.Type:
        if name in self.base_types:
            return self.base_types[name]
        if name in self.abstract:
            raise AbstractTypeError(f"Type '{name}' is abstract and has no concrete type")
        if name in self.unmapped:
            raise RecordError(f"No LLVM type for '{name}' (qual_type {self.unmapped[name]})")
        raise RecordError(f"Unknown type '{name}'")

    def to_llvm_type(self, record: TypeRecord) -> ir.Type:
        rt = self.base_type(record.name)
        if record.vec_width > 0:
            rt = ir.VectorType(rt, record.vec_width)
        if record.is_pointer:
            rt = ir.PointerType(rt, addrspace=record.addr_space.llvm_addrspace)
        return rt

    def signature_types(self, builtin: Builtin) -> Tuple[ir.Type, List[ir.Type]]:
        """(return type, argument types) of an overload"""
        types = [self.to_llvm_type(record) for record in builtin.signature]
        return types[0], types[1:]

    def function_type(self, builtin: Builtin) -> ir.FunctionType:
        ret, args = self.signature_types(builtin)
        return ir.FunctionType(ret, args)
