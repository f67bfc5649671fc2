from __future__ import annotations

import argparse
import math
from pathlib import Path
from typing import Any

from .. import options
from ..options import fmt_num
from ..runner import Context


NAME = "mandala"
HELP = "Wrap mirrored copies of an image around a circle"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", dest="diameter", type=options.int_range(16, 8192), default=512, help="Output diameter in pixels (default: 512)")
    parser.add_argument("-n", dest="petals", type=options.int_range(1, 64), default=8, help="Mirrored petal pairs 1..64 (default: 8)")
    parser.add_argument(
        "-v",
        dest="virtual_pixel",
        type=options.choice("mirror", "tile", "edge", "background", "transparent"),
        default="mirror",
        help="Virtual pixel method (default: mirror)",
    )
    parser.add_argument("-r", dest="rotation", type=options.float_range(-360, 360), default=0.0, help="Rotation in degrees (default: 0)")
    parser.add_argument("-b", dest="background", type=options.color, default="none", help="Background color (default: none)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def petal_width(diameter: int, petals: int) -> int:
    # Each petal pair covers 1/petals of the circumference, split in two mirrored halves.
    return max(1, round(math.pi * diameter / (2 * petals)))


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)

    d = args.diameter
    r = d / 2
    half = petal_width(d, args.petals)
    start = args.rotation
    cmd = [
        str(inp),
        "-resize", f"{half}x{max(1, round(r))}!",
        "(", "+clone", "-flop", ")", "+append",
    ]
    if args.petals > 1:
        cmd += ["-duplicate", str(args.petals - 1), "+append"]
    cmd += [
        "-virtual-pixel", args.virtual_pixel,
        "-background", args.background,
        "+distort", "Polar", f"{fmt_num(r)},0 0,0 {fmt_num(start)},{fmt_num(start + 360)}",
        "+repage",
        "-gravity", "center",
        "-extent", f"{d}x{d}",
    ]
    ctx.write(cmd, out)
    return {"petal_width": half}
