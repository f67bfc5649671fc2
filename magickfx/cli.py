from __future__ import annotations

import argparse
import json
import sys
import textwrap
from pathlib import Path
from typing import Any, NoReturn

from . import __version__
from .effects import EFFECTS
from .options import UsageError
from .runner import Context, MagickError, Runner, Workspace, eprint
from .toolchain import ToolchainError, detect_toolchain


SCHEMA_VERSION = 1


class UsageParser(argparse.ArgumentParser):
    # Usage errors exit 1 like every other failure.
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-h", "-help", "--help", action="help", help="Show this help message and exit")
    common.add_argument("--dry-run", action="store_true", help="Print planned commands; do not write outputs")
    common.add_argument("--json", action="store_true", help="Emit a JSON summary to stdout (logs go to stderr)")
    common.add_argument("--overwrite", action="store_true", help="Overwrite outputs if they already exist")
    common.add_argument("--verbose", action="store_true", help="Echo each ImageMagick command to stderr")
    return common


def build_parser() -> UsageParser:
    parser = UsageParser(
        prog="magickfx",
        add_help=False,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Image effects built on ImageMagick.",
        epilog=textwrap.dedent(
            """\
            Notes:
              - Run `magickfx <effect> -h` for the options of one effect.
              - MAGICKFX_BACKEND=magick|convert forces the ImageMagick 7 or 6 command style.
              - MAGICKFX_TMPDIR sets where scratch files are kept while an effect runs.
            """
        ),
    )
    parser.add_argument("-h", "-help", "--help", action="help", help="Show this help message and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = common_options()
    sub = parser.add_subparsers(dest="effect", metavar="effect", required=True)
    for name, module in EFFECTS.items():
        p = sub.add_parser(name, help=module.HELP, description=module.HELP, parents=[common], add_help=False)
        module.add_arguments(p)
        p.set_defaults(effect_parser=p)
    return parser


def render_human(summary: dict[str, Any]) -> str:
    lines = [f"effect: {summary['operation']}"]
    for cmd in summary["commands"] if summary["dry_run"] else []:
        lines.append(f"$ {cmd}")
    for out in summary["outputs"]:
        lines.append(f"- {'planned' if summary['dry_run'] else 'ok'}: {out}")
    for key, value in (summary.get("result") or {}).items():
        lines.append(f"{key}: {value}")
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    effect = EFFECTS[args.effect]
    effect_parser: argparse.ArgumentParser = args.effect_parser

    try:
        toolchain = detect_toolchain()
    except ToolchainError as exc:
        eprint(f"magickfx: error: {exc}")
        return 1

    runner = Runner(toolchain, dry_run=args.dry_run, verbose=args.verbose)
    outputs: list[Path] = []
    result: dict[str, Any] | None = None
    error: str | None = None

    try:
        with Workspace() as workspace:
            ctx = Context(toolchain=toolchain, runner=runner, workspace=workspace, overwrite=args.overwrite)
            try:
                result = effect.run(args, ctx)
            finally:
                outputs = list(ctx.outputs)
    except UsageError as exc:
        effect_parser.print_usage(sys.stderr)
        eprint(f"{effect_parser.prog}: error: {exc}")
        error = str(exc)
    except (MagickError, ToolchainError) as exc:
        eprint(f"{effect_parser.prog}: error: {exc}")
        error = str(exc)
    except (OSError, UnicodeDecodeError) as exc:
        # Scratch dir, output dir or rename failures; undecodable tool output.
        eprint(f"{effect_parser.prog}: error: {exc}")
        error = str(exc)

    summary: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "operation": args.effect,
        "backend": toolchain.backend,
        "version": toolchain.version_str,
        "dry_run": args.dry_run,
        "commands": runner.commands,
        "outputs": [str(p) for p in outputs],
        "warnings": runner.warnings,
        "result": result,
        "status": "ok" if error is None else "error",
        "error": error,
    }

    if args.json:
        sys.stdout.write(json.dumps(summary, ensure_ascii=False))
        sys.stdout.write("\n")
    elif error is None:
        sys.stdout.write(render_human(summary))

    return 0 if error is None else 1


def entrypoint() -> None:
    raise SystemExit(main(sys.argv[1:]))
