"""
Table Emission

Renders the type-ID enum, the struct declarations, the flat signature table
and the builtin table.

Signature table rows, one per type slot, grouped by signature offset:
    // 12
    { OCLT_uchar, 4, clang::LangAS::Default, false },
    { OCLT_float, 4, clang::LangAS::Default, false },
i.e. offset 12 holds a signature returning uchar4 and taking one float4.

Builtin table rows, one per overload, grouped by name:
    // acos
      { 2, 0, "", 100 },
i.e. an acos overload from OpenCL 1.0, in no extension, whose two type slots
(return + one argument) start at offset 0 of the signature table.
"""

from typing import TYPE_CHECKING

from emitter.string_matcher import escape_c_string

if TYPE_CHECKING:
    from emitter.core import BuiltinNameEmitter


class TablesGenerator:
    """Emits the declarations and the two flat tables."""

    def __init__(self, emitter: 'BuiltinNameEmitter'):
        self.emitter = emitter

    @property
    def out(self):
        return self.emitter.out

    @property
    def config(self):
        return self.emitter.config

    def type_id(self, name: str) -> str:
        return f"{self.config.type_prefix}{name}"

    def emit_declarations(self):
        cfg = self.config
        self.out.write(f"enum {cfg.type_enum} {{\n")
        for name in self.emitter.records.type_names():
            self.out.write(f"  {self.type_id(name)},\n")
        self.out.write("};\n")

        self.out.write(f"""

// Type used in a prototype of a builtin function.
struct {cfg.type_struct} {{
  // A type (e.g.: float, int, ...)
  {cfg.type_enum} ID;
  // Size of vector (if applicable)
  unsigned VectorWidth;
  // Address space of the pointer (if applicable)
  LangAS AS;
  // Whether the type is a pointer
  bool isPointer;
}};

// One overload of a builtin function.
struct {cfg.decl_struct} {{
  // Number of arguments for the signature, including the return type
  unsigned NumArgs;
  // Index in the {cfg.signature_table} table to get the required types
  unsigned ArgTableIndex;
  // Extension to which it belongs (e.g. cl_khr_subgroups)
  const char *Extension;
  // Version in which it was introduced (e.g. CL20)
  unsigned Version;
}};

""")

    def emit_signature_table(self):
        cfg = self.config
        self.out.write(f"{cfg.type_struct} {cfg.signature_table}[] = {{\n")
        for signature, offset in self.emitter.signatures:
            self.out.write(f"// {offset}\n")
            for record in signature:
                pointer = "true" if record.is_pointer else "false"
                self.out.write(
                    f"{{ {self.type_id(record.name)}, {record.vec_width}, "
                    f"{record.addr_space.spelling}, {pointer} }},\n"
                )
        self.out.write("};\n\n")

    def emit_builtin_table(self):
        cfg = self.config
        self.out.write(f"{cfg.decl_struct} {cfg.builtin_table}[] = {{\n")
        for name, overloads in self.emitter.overloads:
            self.out.write(f"// {name}\n")
            for builtin, offset in overloads:
                self.out.write(
                    f"  {{ {builtin.num_args}, {offset}, "
                    f"\"{escape_c_string(builtin.extension)}\", {builtin.version} }},\n"
                )
        self.out.write("};\n\n")
