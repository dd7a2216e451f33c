"""
Tests for overload collection and signature interning.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from builtin_nodes import AbstractTypeError, Builtin, RecordError, TypeRecord
from emitter.overloads import OverloadInfo, SignatureSet, collect_overloads


class TestSignatureSet:
    """Tests for the signature interner"""

    def test_first_signature_at_zero(self, types):
        sigs = SignatureSet()
        assert sigs.intern((types["float"], types["float"])) == 0
        assert sigs.total == 2

    def test_offsets_are_cumulative(self, types):
        sigs = SignatureSet()
        assert sigs.intern((types["float"], types["float"])) == 0
        assert sigs.intern((types["float"], types["int"], types["int"])) == 2
        assert sigs.intern((types["uint"],)) == 5
        assert sigs.total == 6

    def test_duplicate_reuses_offset(self, types):
        sigs = SignatureSet()
        sigs.intern((types["float"], types["float"]))
        sigs.intern((types["double"], types["double"]))
        assert sigs.intern((types["float"], types["float"])) == 0
        assert len(sigs) == 2
        assert sigs.total == 4

    def test_same_shape_different_types(self, types):
        sigs = SignatureSet()
        a = sigs.intern((types["float"], types["float"]))
        b = sigs.intern((types["int"], types["int"]))
        assert a != b

    def test_record_identity_not_name(self, types):
        """float and float4 share a type name but are different records"""
        sigs = SignatureSet()
        a = sigs.intern((types["float"], types["float"]))
        b = sigs.intern((types["float4"], types["float4"]))
        assert a != b

    def test_prefix_is_not_a_match(self, types):
        sigs = SignatureSet()
        sigs.intern((types["float"], types["float"], types["float"]))
        assert sigs.find((types["float"], types["float"])) is None
        assert sigs.intern((types["float"], types["float"])) == 3

    def test_rows_flatten_in_order(self, types):
        sigs = SignatureSet()
        sigs.intern((types["float"], types["int"]))
        sigs.intern((types["void"],))
        rows = list(sigs.rows())
        assert rows == [
            (0, 0, types["float"]),
            (0, 1, types["int"]),
            (2, 2, types["void"]),
        ]


class TestOverloadInfo:
    """Tests for the ordered name -> overloads map"""

    def test_first_seen_order(self, make_builtin):
        info = OverloadInfo()
        info.add(make_builtin("sin", "float", "float"), 0)
        info.add(make_builtin("cos", "float", "float"), 0)
        info.add(make_builtin("sin", "double", "double"), 2)
        assert info.names() == ["sin", "cos"]
        assert [off for _, off in info.get("sin")] == [0, 2]

    def test_missing_name(self):
        info = OverloadInfo()
        assert info.get("tan") == []
        assert "tan" not in info.names()
        assert len(info) == 0

    def test_overload_count(self, make_builtin):
        info = OverloadInfo()
        info.add(make_builtin("a", "float"), 0)
        info.add(make_builtin("b", "float"), 0)
        info.add(make_builtin("a", "int"), 1)
        assert info.overload_count() == 3
        assert len(info) == 2


class TestCollectOverloads:
    """Tests for the single collection pass"""

    def test_cos_sin_scenario(self, cos_sin_store):
        sigs, info = collect_overloads(cos_sin_store.builtins)
        assert [off for _, off in sigs] == [0, 2]
        assert sigs.total == 4
        assert info.names() == ["cos", "sin"]
        assert [off for _, off in info.get("cos")] == [0, 2]
        assert [off for _, off in info.get("sin")] == [0]

    def test_identical_signatures_kept_as_rows(self, make_builtin):
        builtins = [
            make_builtin("atom_add", "int", "local_int_ptr", "int",
                         extension="cl_khr_local_int32_base_atomics"),
            make_builtin("atom_add", "int", "local_int_ptr", "int",
                         extension="cl_khr_local_int32_extended_atomics"),
        ]
        sigs, info = collect_overloads(builtins)
        rows = info.get("atom_add")
        assert len(rows) == 2
        assert rows[0][1] == rows[1][1] == 0
        assert rows[0][0].extension != rows[1][0].extension
        assert len(sigs) == 1

    def test_equal_signatures_share_offsets(self, make_builtin):
        builtins = [
            make_builtin("fma", "float", "float", "float", "float"),
            make_builtin("mad", "float", "float", "float", "float"),
            make_builtin("fma", "double", "double", "double", "double"),
            make_builtin("mad", "double", "double", "double", "double"),
        ]
        sigs, info = collect_overloads(builtins)
        assert [off for _, off in info.get("fma")] == [off for _, off in info.get("mad")]
        assert sigs.total == 8

    def test_offsets_tile_table(self, make_builtin):
        builtins = [
            make_builtin("a", "float", "float"),
            make_builtin("b", "int", "int", "int"),
            make_builtin("c", "float", "float"),
            make_builtin("d", "void"),
            make_builtin("e", "float4", "float4", "global_float_ptr"),
        ]
        sigs, _ = collect_overloads(builtins)
        expected = 0
        for signature, offset in sigs:
            assert offset == expected
            expected += len(signature)
        assert expected == sigs.total == len(list(sigs.rows()))

    def test_abstract_type_rejected(self, make_builtin):
        with pytest.raises(AbstractTypeError, match="gentype"):
            collect_overloads([make_builtin("abs", "gentype", "gentype")])

    def test_empty_input(self):
        sigs, info = collect_overloads([])
        assert len(sigs) == 0
        assert len(info) == 0


class TestBuiltinRecord:
    """Tests for Builtin construction"""

    def test_signature_becomes_tuple(self, types):
        b = Builtin("cos", [types["float"], types["float"]], 100)
        assert b.signature == (types["float"], types["float"])
        assert b.num_args == 2

    def test_empty_signature_rejected(self):
        with pytest.raises(RecordError):
            Builtin("cos", (), 100)

    def test_missing_name_rejected(self, types):
        with pytest.raises(RecordError):
            Builtin("", (types["float"],), 100)

    def test_version_required(self, types):
        with pytest.raises(TypeError):
            Builtin("cos", (types["float"], types["float"]))

    @pytest.mark.parametrize("version", [True, "CL10", 1.0])
    def test_version_must_be_int(self, types, version):
        with pytest.raises(RecordError, match="version"):
            Builtin("cos", (types["float"], types["float"]), version)

    def test_extension_after_version(self, types):
        b = Builtin("cos", (types["float"], types["float"]), 120, "cl_khr_fp64")
        assert b.version == 120
        assert b.extension == "cl_khr_fp64"

    @pytest.mark.parametrize("name", ["co s", "2cos", "cos\n", "cos-x"])
    def test_name_must_be_identifier(self, types, name):
        with pytest.raises(RecordError, match="C identifier"):
            Builtin(name, (types["float"],), 100)

    def test_type_name_must_be_identifier(self):
        with pytest.raises(RecordError, match="C identifier"):
            TypeRecord("uint", "unsigned int", "UnsignedIntTy")

    def test_repr(self, make_builtin):
        b = make_builtin("vload4", "float4", "int", "global_float_ptr")
        assert repr(b) == "float4 vload4(int, global float*)"
