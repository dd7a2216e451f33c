"""
OpenCL Builtin Record Loader

Reads a builtin database from TOML into a RecordStore and validates it.

The database format:
  [emitter]     optional overrides for the generated spellings
  [versions]    optional named versions (CL10, CL11, CL12, CL20 are built in)
  [[type]]      type records: name, qual_type or abstract, def, vec_width,
                addr_space, is_pointer
  [[builtin]]   overloads: name, signature (record ids), extension, version

Any malformed record aborts the load; later offsets depend on every
earlier record, so there is nothing sensible to skip to.
"""

from typing import Any, Dict, List

# TOML parsing - use stdlib tomllib in 3.11+, fallback to tomli
try:
    import tomllib
except ImportError:
    import tomli as tomllib

from builtin_nodes import (
    AddrSpace, Builtin, RecordError, RecordStore, TypeRecord, DEFAULT_VERSIONS,
)


def load_records(path: str) -> RecordStore:
    """Load and validate a builtin database file"""
    with open(path, 'rb') as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise RecordError(f"Failed to parse {path}: {e}")
    return build_records(data)


def parse_records(text: str) -> RecordStore:
    """Parse a builtin database from a TOML string"""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise RecordError(f"Failed to parse builtin database: {e}")
    return build_records(data)


def build_records(data: Dict[str, Any]) -> RecordStore:
    """Build a RecordStore from already-decoded TOML tables"""
    versions = dict(DEFAULT_VERSIONS)
    for vname, vnum in data.get('versions', {}).items():
        if not isinstance(vnum, int) or isinstance(vnum, bool):
            raise RecordError(f"versions.{vname} must be an integer")
        versions[vname] = vnum

    store = RecordStore(options=dict(data.get('emitter', {})))

    by_id: Dict[str, TypeRecord] = {}
    by_name: Dict[str, TypeRecord] = {}
    for i, entry in enumerate(data.get('type', [])):
        name = entry.get('name')
        inherits = 'qual_type' not in entry and 'abstract' not in entry
        if inherits and isinstance(name, str) and name in by_name:
            # Derived records (float4, global float*) inherit their base
            base = by_name[name]
            if base.is_abstract:
                entry = dict(entry, abstract=True)
            else:
                entry = dict(entry, qual_type=base.qual_type)
        record = _type_record(entry, i)
        if record.record_id in by_id:
            raise RecordError(f"Duplicate type record '{record.record_id}'")
        # One type ID per name, so every record of a name needs the same base
        first = by_name.setdefault(record.name, record)
        if first.qual_type != record.qual_type:
            raise RecordError(
                f"Type record '{record.record_id}' declares '{record.name}' as "
                f"{record.qual_type or 'abstract'}, but '{first.record_id}' "
                f"declared it as {first.qual_type or 'abstract'}"
            )
        by_id[record.record_id] = record
        store.types.append(record)

    for i, entry in enumerate(data.get('builtin', [])):
        store.builtins.append(_builtin(entry, i, by_id, versions))

    return store


def _require(entry: Dict[str, Any], key: str, kind: type, where: str):
    if key not in entry:
        raise RecordError(f"{where} missing required field '{key}'")
    value = entry[key]
    # bool is an int subclass; never accept it where a number is expected
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise RecordError(f"{where}: '{key}' must be {kind.__name__}")
    return value


def _type_record(entry: Dict[str, Any], index: int) -> TypeRecord:
    where = f"type #{index}"
    name = _require(entry, 'name', str, where)
    where = f"type '{name}'"

    qual_type = entry.get('qual_type')
    if entry.get('abstract', False):
        if qual_type is not None:
            raise RecordError(f"{where} is abstract but names qual_type '{qual_type}'")
    elif qual_type is None:
        raise RecordError(f"{where} needs a qual_type or abstract = true")
    elif not isinstance(qual_type, str):
        raise RecordError(f"{where}: 'qual_type' must be str")

    vec_width = entry.get('vec_width', 0)
    if not isinstance(vec_width, int) or isinstance(vec_width, bool) or vec_width < 0:
        raise RecordError(f"{where}: 'vec_width' must be a non-negative integer")

    is_pointer = entry.get('is_pointer', False)
    if not isinstance(is_pointer, bool):
        raise RecordError(f"{where}: 'is_pointer' must be a boolean")

    record_id = entry.get('def', name)
    if not isinstance(record_id, str) or not record_id:
        raise RecordError(f"{where}: 'def' must be a non-empty string")

    return TypeRecord(
        record_id=record_id,
        name=name,
        qual_type=qual_type,
        vec_width=vec_width,
        addr_space=AddrSpace.parse(entry.get('addr_space', 'Default')),
        is_pointer=is_pointer,
    )


def _builtin(entry: Dict[str, Any], index: int,
             by_id: Dict[str, TypeRecord], versions: Dict[str, int]) -> Builtin:
    where = f"builtin #{index}"
    name = _require(entry, 'name', str, where)
    where = f"builtin '{name}' (#{index})"

    refs: List[str] = _require(entry, 'signature', list, where)
    if not refs:
        raise RecordError(f"{where} has an empty signature; a return type is required")
    signature = []
    for ref in refs:
        if not isinstance(ref, str) or ref not in by_id:
            raise RecordError(f"{where} references unknown type '{ref}'")
        signature.append(by_id[ref])

    if 'version' not in entry:
        raise RecordError(f"{where} missing required field 'version'")
    version = entry['version']
    if isinstance(version, str):
        if version not in versions:
            raise RecordError(f"{where} uses unknown version '{version}'")
        version = versions[version]
    elif not isinstance(version, int) or isinstance(version, bool):
        raise RecordError(f"{where}: 'version' must be an integer or version name")

    extension = entry.get('extension', '')
    if not isinstance(extension, str):
        raise RecordError(f"{where}: 'extension' must be str")

    return Builtin(
        name=name,
        signature=tuple(signature),
        extension=extension,
        version=version,
    )
