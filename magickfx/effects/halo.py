from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import fmt_num
from ..runner import Context


NAME = "halo"
HELP = "Surround the opaque part of a transparent image with a soft colored glow"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-w", dest="width", type=options.int_range(1, 100), default=8, help="Halo width in pixels 1..100 (default: 8)")
    parser.add_argument("-c", dest="color", type=options.color, default="white", help="Halo color (default: white)")
    parser.add_argument("-b", dest="blur", type=options.float_range(0), default=4.0, help="Halo blur sigma >= 0 (default: 4)")
    parser.add_argument("-o", dest="opacity", type=options.int_range(0, 100), default=80, help="Halo opacity percent 0..100 (default: 80)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def halo_args(*, width: int, color: str, blur: float, opacity: int) -> list[str]:
    args = ["(", "+clone", "-alpha", "extract", "-morphology", "dilate", f"disk:{width}"]
    if blur > 0:
        args += ["-blur", f"0x{fmt_num(blur)}"]
    args += ["-background", color, "-alpha", "shape"]
    if opacity < 100:
        args += ["-channel", "A", "-evaluate", "multiply", fmt_num(opacity / 100), "+channel"]
    args += [")", "+swap", "-compose", "over", "-composite"]
    return args


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)

    info = ctx.runner.image_info(inp)
    if info.alpha is False:
        ctx.runner.warn(f"{inp.name} has no alpha channel; the halo will fill the whole frame")

    cmd = [str(inp), "-alpha", "set", "-background", "none"]
    cmd += halo_args(width=args.width, color=args.color, blur=args.blur, opacity=args.opacity)
    ctx.write(cmd, out)
    return None
