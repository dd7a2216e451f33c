"""
String Matcher for Builtin Names

Compiles a fixed set of strings into a decision tree: first on the string
length, then on characters. Where every remaining candidate shares a run of
characters the run is compared at once; otherwise the tree switches on the
next character. The same tree is used to:
- emit a C++ matcher over an llvm::StringRef
- match names in-process (NameDispatcher.lookup)

Either way the cost of a match depends on the length of the queried string,
not on the number of names.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO, Tuple

from builtin_nodes import MatcherError


_C_ESCAPES = {'\n': '\\n', '\t': '\\t', '\r': '\\r'}


def escape_c_string(text: str) -> str:
    """Escape text for use inside a C double-quoted literal"""
    escaped = []
    for byte in text.encode('utf-8'):
        ch = chr(byte)
        if ch in ('\\', '"'):
            escaped.append('\\' + ch)
        elif ch in _C_ESCAPES:
            escaped.append(_C_ESCAPES[ch])
        elif byte < 0x20 or byte >= 0x7f:
            # Three octal digits, so a following digit is not absorbed
            escaped.append(f"\\{byte:03o}")
        else:
            escaped.append(ch)
    return "".join(escaped)


def escape_c_char(ch: str) -> str:
    """Escape one character for use inside a C single-quoted literal"""
    if ch in ('\\', "'"):
        return '\\' + ch
    return ch


class _Leaf:
    def __init__(self, key: str, payload: Any):
        self.key = key
        self.payload = payload


class _Prefix:
    """All candidates share text at [char_no, char_no + len(text))"""

    def __init__(self, char_no: int, text: str, child):
        self.char_no = char_no
        self.text = text
        self.child = child


class _Switch:
    def __init__(self, char_no: int, cases: Dict[str, Any], sizes: Dict[str, int]):
        self.char_no = char_no
        self.cases = cases  # char -> node, in character order
        self.sizes = sizes  # char -> number of candidates


def _first_non_common(keys: Sequence[str], char_no: int) -> int:
    first = keys[0]
    for i in range(char_no, len(first)):
        if any(key[i] != first[i] for key in keys):
            return i
    return len(first)


def _build_node(matches: List[Tuple[str, Any]], char_no: int):
    key0 = matches[0][0]
    if char_no == len(key0):
        if len(matches) > 1:
            raise MatcherError(f"Duplicate keys to match: '{key0}'")
        return _Leaf(key0, matches[0][1])

    buckets: Dict[str, List[Tuple[str, Any]]] = {}
    for match in matches:
        buckets.setdefault(match[0][char_no], []).append(match)

    if len(buckets) == 1:
        end = _first_non_common([key for key, _ in matches], char_no)
        return _Prefix(char_no, key0[char_no:end], _build_node(matches, end))

    cases = {}
    sizes = {}
    for ch in sorted(buckets):
        cases[ch] = _build_node(buckets[ch], char_no + 1)
        sizes[ch] = len(buckets[ch])
    return _Switch(char_no, cases, sizes)


def _plural(n: int) -> str:
    return f"{n} string to match." if n == 1 else f"{n} strings to match."


class StringMatcher:
    """
    Decision tree over (key, payload) pairs.

    Keys must be unique and ASCII, so that C++ byte offsets and Python
    character offsets agree.
    """

    def __init__(self, var_name: str, matches: Sequence[Tuple[str, Any]]):
        self.var_name = var_name
        by_length: Dict[int, List[Tuple[str, Any]]] = {}
        for key, payload in matches:
            if not key.isascii():
                raise MatcherError(f"Cannot match non-ASCII key '{key}'")
            by_length.setdefault(len(key), []).append((key, payload))
        self.counts = {n: len(by_length[n]) for n in sorted(by_length)}
        self.roots = {n: _build_node(by_length[n], 0) for n in sorted(by_length)}

    def match(self, text: str) -> Optional[Any]:
        """Return the payload for text, or None"""
        node = self.roots.get(len(text))
        while node is not None:
            if isinstance(node, _Leaf):
                return node.payload
            if isinstance(node, _Prefix):
                end = node.char_no + len(node.text)
                if text[node.char_no:end] != node.text:
                    return None
                node = node.child
            else:
                node = node.cases.get(text[node.char_no])
        return None

    # ========================================================================
    # C++ emission
    # ========================================================================

    def emit(self, out: TextIO, render: Callable[[Any], str] = str):
        """Emit the matcher; render turns a payload into C++ statements."""
        var = self.var_name
        out.write(f"  switch ({var}.size()) {{\n")
        out.write("  default: break;\n")
        for length, root in self.roots.items():
            out.write(f"  case {length}:\t // {_plural(self.counts[length])}\n")
            if self._emit_node(out, root, 0, render):
                out.write("    break;\n")
        out.write("  }\n")

    def _emit_node(self, out: TextIO, node, depth: int,
                   render: Callable[[Any], str]) -> bool:
        """Emit node; return True if control can fall out of it."""
        indent = " " * (depth * 2 + 4)
        var = self.var_name

        if isinstance(node, _Leaf):
            lines = render(node.payload).split('\n')
            out.write(f"{indent}{lines[0]}\t // \"{escape_c_string(node.key)}\"\n")
            for line in lines[1:]:
                if line:
                    out.write(f"{indent}{line}\n")
            return False

        if isinstance(node, _Prefix):
            if len(node.text) == 1:
                out.write(f"{indent}if ({var}[{node.char_no}] != "
                          f"'{escape_c_char(node.text)}')\n")
            else:
                out.write(f"{indent}if (memcmp({var}.data()+{node.char_no}, "
                          f"\"{escape_c_string(node.text)}\", {len(node.text)}) != 0)\n")
            out.write(f"{indent}  break;\n")
            return self._emit_node(out, node.child, depth, render)

        out.write(f"{indent}switch ({var}[{node.char_no}]) {{\n")
        out.write(f"{indent}default: break;\n")
        for ch, child in node.cases.items():
            out.write(f"{indent}case '{escape_c_char(ch)}':\t // {_plural(node.sizes[ch])}\n")
            if self._emit_node(out, child, depth + 1, render):
                out.write(f"{indent}  break;\n")
        out.write(f"{indent}}}\n")
        return True


class NameDispatcher:
    """
    Maps each builtin name to (start, count) in the builtin table.

    Index 0 is reserved for "not a builtin": starts begin at 1 and advance by
    each name's overload count, in OverloadInfo order.
    """

    def __init__(self, overloads, var_name: str = "name"):
        if not len(overloads):
            raise MatcherError("No builtin names to dispatch on")
        self.entries: List[Tuple[str, int, int]] = []
        start = 1
        for name, name_overloads in overloads:
            self.entries.append((name, start, len(name_overloads)))
            start += len(name_overloads)
        self.matcher = StringMatcher(
            var_name, [(name, (s, n)) for name, s, n in self.entries]
        )

    def lookup(self, name: str) -> Tuple[int, int]:
        found = self.matcher.match(name)
        if found is None:
            return (0, 0)
        return found

    def emit_function(self, out: TextIO, function_name: str):
        out.write(f"""
// Return 0 if name is not a recognized builtin, or an index into a table
// of declarations and the number of overloads if it is a builtin.
std::pair<unsigned, unsigned> {function_name}(llvm::StringRef {self.matcher.var_name}) {{

""")
        self.matcher.emit(out, render=lambda p: f"return std::make_pair({p[0]}, {p[1]});")
        out.write("  return std::make_pair(0, 0);\n")
        out.write("}\n")
