#!/usr/bin/env python3
"""
newtonpkg.py

Inspect a Newton package: directory header, part table and the object
records stored in each part.

Usage:
  python newtonpkg.py package.pkg
  python newtonpkg.py package.pkg --json

Exit codes:
  0 = package decoded (including packages with relocation data, which are
      recognized and reported but not decoded)
  1 = runtime error (open failure, short read, out of memory, unusable directory)
  2 = incorrect usage (arg parsing)
"""
import sys
import argparse
from typing import List, Optional

from byte_utils import PackageError
from reader import read_package
from report import format_report, report_to_json


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(prog='newtonpkg',
                                     description='Newton package format inspector')
    parser.add_argument('package', help='Path to the package file')
    parser.add_argument('--json', action='store_true', help='Print the report as JSON')

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help exits 0; anything else is a usage error
        return 0 if e.code == 0 else 2

    try:
        report = read_package(args.package)
    except OSError as e:
        print(f"Error: can't open {args.package}: {e.strerror or e}", file=sys.stderr)
        return 1
    except EOFError as e:
        print(f"Error: I/O error reading {args.package}: {e}", file=sys.stderr)
        return 1
    except MemoryError:
        print("Error: out of memory.", file=sys.stderr)
        return 1
    except PackageError as e:
        print(f"Error: cannot decode {args.package}: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(report_to_json(report))
    else:
        print(format_report(report), end='')
    return 0


if __name__ == '__main__':
    sys.exit(main())
