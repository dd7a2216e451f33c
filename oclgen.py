#!/usr/bin/env python3
"""
OpenCL Builtin Table Generator

Usage:
    python oclgen.py <database.toml> [-o output] [--lookup NAME] [--stats]

Examples:
    python oclgen.py databases/opencl_c.toml                  # Print generated C++
    python oclgen.py databases/opencl_c.toml -o OpenCLBuiltins.inc
    python oclgen.py databases/opencl_c.toml --lookup cos     # Show the overloads of cos
    python oclgen.py databases/opencl_c.toml --stats          # Table sizes
"""

import os
import sys
import argparse
import tempfile

from builtin_nodes import EmitError
from records_loader import load_records
from emitter import BuiltinNameEmitter


def print_lookup(emitter: BuiltinNameEmitter, name: str):
    """Print the builtin table range and reconstructed types for one name"""
    start, count = emitter.lookup(name)
    if count == 0:
        print(f"{name}: not a builtin")
        return

    print(f"{name}: index {start}, {count} overload(s)")
    finder = emitter.llvm_types()
    for builtin, offset in emitter.overloads.get(name):
        fnty = finder.function_type(builtin)
        ext = f" [{builtin.extension}]" if builtin.extension else ""
        print(f"  {fnty}  sig@{offset} v{builtin.version}{ext}")


def write_atomically(path: str, text: str):
    """Write text to path through a temporary file in the same directory"""
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".oclgen-", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(text)
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise


def generate(source_path: str, output_path: str = None,
             lookup: list = None, stats: bool = False):
    """
    Generate the builtin include file for a database.

    Args:
        source_path: Path to the .toml builtin database
        output_path: Output file (default: stdout)
        lookup: Names to look up instead of writing output
        stats: Print table sizes instead of writing output
    """
    to_file = output_path is not None and output_path != "-"

    if to_file:
        print(f"Loading {source_path}...")
    records = load_records(source_path)

    emitter = BuiltinNameEmitter(records)
    if to_file:
        print("Collecting overloads...")
    emitter.collect()

    if lookup or stats:
        for name in lookup or []:
            print_lookup(emitter, name)
        if stats:
            for key, value in emitter.stats().items():
                print(f"{key}: {value}")
        return

    text = emitter.emit()

    if not to_file:
        sys.stdout.write(text)
        return

    print(f"Writing {output_path}...")
    write_atomically(output_path, text)
    counts = emitter.stats()
    print(f"Generated {counts['overloads']} overload(s) of "
          f"{counts['builtin_names']} builtin(s), "
          f"{counts['signatures']} distinct signature(s)")


def main():
    parser = argparse.ArgumentParser(
        description="OpenCL Builtin Table Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s opencl_c.toml                    Print generated C++ to stdout
  %(prog)s opencl_c.toml -o Builtins.inc    Write generated C++ to a file
  %(prog)s opencl_c.toml --lookup cos       Show the overloads of cos
  %(prog)s opencl_c.toml --stats            Print table sizes
        """
    )

    parser.add_argument("source", help="Builtin database (.toml)")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("--lookup", action="append", metavar="NAME",
                        help="Look up a builtin name (repeatable)")
    parser.add_argument("--stats", action="store_true",
                        help="Print table sizes")

    args = parser.parse_args()

    try:
        generate(args.source, args.output, lookup=args.lookup, stats=args.stats)
    except (EmitError, OSError) as e:
        print(f"Generation failed: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Internal generator error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(2)


if __name__ == "__main__":
    main()
