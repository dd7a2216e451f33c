"""
Overload Collection and Signature Interning

collect_overloads() scans the builtin records once and produces:
- SignatureSet: each distinct signature stored once, with a cumulative offset
  into the flat signature table
- OverloadInfo: builtin name -> [(Builtin, signature offset), ...] in
  first-seen name order

E.g. for cos(float), cos(double), sin(float):
    SignatureSet: (float, float) @ 0, (double, double) @ 2
    OverloadInfo: cos -> [(cos(float), 0), (cos(double), 2)]
                  sin -> [(sin(float), 0)]
"""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from builtin_nodes import AbstractTypeError, Builtin, Signature, TypeRecord


class SignatureSet:
    """Distinct signatures in first-interned order, each with its start offset."""

    def __init__(self):
        self.entries: List[Tuple[Signature, int]] = []
        self.total = 0  # rows in the flattened table so far

    def intern(self, signature: Signature) -> int:
        """Return the offset of signature, appending it if not seen before."""
        signature = tuple(signature)
        offset = self.find(signature)
        if offset is None:
            offset = self.total
            self.entries.append((signature, offset))
            self.total += len(signature)
        return offset

    def find(self, signature: Signature) -> Optional[int]:
        signature = tuple(signature)
        for existing, offset in self.entries:
            if existing == signature:
                return offset
        return None

    def rows(self) -> Iterator[Tuple[int, int, TypeRecord]]:
        """Flattened (signature offset, row index, record) triples"""
        for signature, offset in self.entries:
            for i, record in enumerate(signature):
                yield offset, offset + i, record

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


class OverloadInfo:
    """
    Ordered map from builtin name to its (Builtin, signature offset) pairs.

    Iteration order is first-seen order of the names and decides the layout
    of the builtin table.
    """

    def __init__(self):
        self._items: List[Tuple[str, List[Tuple[Builtin, int]]]] = []
        self._index: Dict[str, int] = {}

    def add(self, builtin: Builtin, offset: int):
        pos = self._index.get(builtin.name)
        if pos is None:
            pos = len(self._items)
            self._index[builtin.name] = pos
            self._items.append((builtin.name, []))
        self._items[pos][1].append((builtin, offset))

    def get(self, name: str) -> List[Tuple[Builtin, int]]:
        pos = self._index.get(name)
        if pos is None:
            return []
        return self._items[pos][1]

    def names(self) -> List[str]:
        return [name for name, _ in self._items]

    def overload_count(self) -> int:
        return sum(len(overloads) for _, overloads in self._items)

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)


def collect_overloads(builtins: Sequence[Builtin]) -> Tuple[SignatureSet, OverloadInfo]:
    """Group builtins by name and intern their signatures, in declaration order."""
    signatures = SignatureSet()
    overloads = OverloadInfo()
    for builtin in builtins:
        for record in builtin.signature:
            if record.is_abstract:
                raise AbstractTypeError(
                    f"Builtin {builtin!r} uses abstract type '{record.name}' "
                    f"(record '{record.record_id}'); only concrete types may "
                    f"appear in a signature"
                )
        offset = signatures.intern(builtin.signature)
        overloads.add(builtin, offset)
    return signatures, overloads
