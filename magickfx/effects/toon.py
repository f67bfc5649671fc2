from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import fmt_num
from ..runner import Context


NAME = "toon"
HELP = "Cartoon look: smoothed flat colors with dark outlines"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-m", dest="smooth", type=options.int_range(1, 20), default=3, help="Median smoothing radius 1..20 (default: 3)")
    parser.add_argument("-n", dest="levels", type=options.int_range(2, 32), default=6, help="Posterize levels 2..32 (default: 6)")
    parser.add_argument("-e", dest="edge", type=options.int_range(1, 10), default=2, help="Edge width 1..10 (default: 2)")
    parser.add_argument("-t", dest="threshold", type=options.float_range(0, 100), default=60.0, help="Edge threshold percent 0..100 (default: 60)")
    parser.add_argument("-b", dest="brightness", type=options.int_range(0, 200), default=100, help="Brightness percent 0..200 (default: 100)")
    parser.add_argument("-s", dest="saturation", type=options.int_range(0, 300), default=150, help="Saturation percent 0..300 (default: 150)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)

    cmd = [str(inp), "-median", str(args.smooth)]
    # Outline mask: white paper, black edges.
    cmd += ["(", "-clone", "0", *ctx.toolchain.colorspace_fixup(), "-colorspace", "gray"]
    cmd += ["-edge", str(args.edge), "-negate", "-threshold", f"{fmt_num(args.threshold)}%", ")"]
    cmd += ["(", "-clone", "0", "-posterize", str(args.levels), ")"]
    cmd += ["-delete", "0", "+swap", "-compose", "multiply", "-composite"]
    cmd += ["-modulate", f"{args.brightness},{args.saturation},100"]
    ctx.write(cmd, out)
    return None
