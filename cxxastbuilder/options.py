from dataclasses import dataclass, field
import typing


def _default_clang_args() -> typing.List[str]:
    return ["-x", "c++", "-std=c++17"]


@dataclass
class ParserOptions:
    """
    Options that control parsing behaviors
    """

    #: If true, prints out what the assemblers find in each declaration
    verbose: bool = False

    #: Arguments passed to the front end when creating a translation unit
    clang_args: typing.List[str] = field(default_factory=_default_clang_args)

    #: Path to the libclang shared library. If not set, the library bundled
    #: with the ``libclang`` package (or found by ``clang.cindex``) is used
    libclang_path: typing.Optional[str] = None

    #: If true, declarations from included files are not collected
    main_file_only: bool = True
