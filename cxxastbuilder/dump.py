import argparse
import dataclasses
import enum
import json
import logging
import pprint
import sys
import typing

from .errors import CxxContractError, CxxParseError
from .options import ParserOptions
from .render import render_declarations
from .simple import ParsedData, parse_file


def _asdict(data: ParsedData) -> typing.Dict[str, typing.Any]:
    asdict = dataclasses.asdict
    return {
        "functions": [asdict(fn) for fn in data.functions],
        "member_functions": [asdict(fn) for fn in data.member_functions],
        "conversion_ops": [asdict(op) for op in data.conversion_ops],
        "diagnostics": [
            {"producer": producer, "message": diag.format()}
            for producer, diag in data.diagnostics
        ],
    }


def _json_default(o: typing.Any) -> typing.Any:
    if isinstance(o, enum.Flag):
        return [flag.name for flag in type(o) if flag in o]
    elif isinstance(o, enum.Enum):
        return o.name
    raise TypeError(f"cannot serialize {type(o).__name__}")


def dumpmain() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("source")
    parser.add_argument(
        "-w",
        "--width",
        default=80,
        type=int,
        help="Width of output when in pprint mode",
    )
    parser.add_argument("-v", "--verbose", default=False, action="store_true")
    parser.add_argument(
        "--mode",
        choices=["json", "pprint", "repr", "cpp"],
        default="pprint",
    )
    parser.add_argument("--libclang", default=None, help="Path to libclang")
    parser.add_argument(
        "--all-files",
        default=False,
        action="store_true",
        help="Also dump declarations from included files",
    )
    parser.add_argument(
        "clang_args", nargs="*", help="Arguments for clang, after a '--'"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    options = ParserOptions(
        verbose=args.verbose,
        libclang_path=args.libclang,
        main_file_only=not args.all_files,
    )
    if args.clang_args:
        options.clang_args = args.clang_args

    try:
        data = parse_file(args.source, options=options)
    except (CxxParseError, CxxContractError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.mode == "pprint":
        ddata = _asdict(data)
        pprint.pprint(ddata, width=args.width, compact=True)

    elif args.mode == "json":
        ddata = _asdict(data)
        json.dump(ddata, sys.stdout, indent=2, default=_json_default)

    elif args.mode == "repr":
        print(data)

    elif args.mode == "cpp":
        sys.stdout.write(render_declarations(data, args.source))

    else:
        parser.error("Invalid mode")


if __name__ == "__main__":
    dumpmain()
