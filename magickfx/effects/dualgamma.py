from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import fmt_num
from ..runner import Context


NAME = "dualgamma"
HELP = "Tone map with separate gammas for shadows and highlights"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", dest="shadow_gamma", type=options.float_range(0.1, 10), default=1.6, help="Shadow gamma 0.1..10 (default: 1.6)")
    parser.add_argument("-b", dest="highlight_gamma", type=options.float_range(0.1, 10), default=0.8, help="Highlight gamma 0.1..10 (default: 0.8)")
    parser.add_argument("-c", dest="contrast", type=options.float_range(0.1, 50), default=5.0, help="Blend mask contrast 0.1..50 (default: 5)")
    parser.add_argument("-m", dest="midpoint", type=options.float_range(0, 100), default=50.0, help="Blend midpoint percent 0..100 (default: 50)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)

    cmd = [str(inp)]
    cmd += ["(", "-clone", "0", "-gamma", fmt_num(args.shadow_gamma), ")"]
    cmd += ["(", "-clone", "0", "-gamma", fmt_num(args.highlight_gamma), ")"]
    # Luminance mask selects the highlight version in bright areas.
    cmd += ["(", "-clone", "0", *ctx.toolchain.colorspace_fixup(), "-colorspace", "gray"]
    cmd += ["-sigmoidal-contrast", f"{fmt_num(args.contrast)}x{fmt_num(args.midpoint)}%", ")"]
    cmd += ["-delete", "0", "-compose", "over", "-composite"]
    ctx.write(cmd, out)
    return None
