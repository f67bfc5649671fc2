from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import fmt_num
from ..runner import Context


NAME = "greenscreen"
HELP = "Key out a backdrop color, optionally despill and place over a new background"

# Clamp the spill channel to the larger of the other two.
DESPILL_FX = {
    "green": ("G", "min(u.g,max(u.r,u.b))"),
    "blue": ("B", "min(u.b,max(u.r,u.g))"),
}


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-k", dest="key", type=options.color, default="#00FF00", help="Key color (default: #00FF00)")
    parser.add_argument("-f", dest="fuzz", type=options.float_range(0, 100), default=20.0, help="Key fuzz percent 0..100 (default: 20)")
    parser.add_argument("-e", dest="erode", type=options.int_range(0, 10), default=1, help="Mask erosion radius 0..10 (default: 1)")
    parser.add_argument("-b", dest="feather", type=options.float_range(0), default=1.0, help="Mask feather blur sigma >= 0 (default: 1)")
    parser.add_argument(
        "-d",
        dest="despill",
        type=options.choice("none", "green", "blue"),
        default="green",
        help="Despill channel (default: green)",
    )
    parser.add_argument("-B", dest="background", type=Path, default=None, help="Background image, scaled to the input size")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def keyed_args(
    inp: Path,
    *,
    key: str,
    fuzz: float,
    erode: int,
    feather: float,
    despill: str,
    copy_alpha: str,
) -> list[str]:
    args = [str(inp), "(", "+clone", "-fuzz", f"{fmt_num(fuzz)}%", "-transparent", key, "-alpha", "extract"]
    if erode > 0:
        args += ["-morphology", "erode", f"disk:{erode}"]
    if feather > 0:
        args += ["-blur", f"0x{fmt_num(feather)}", "-level", "50x100%"]
    args += [")"]
    if despill != "none":
        channel, fx = DESPILL_FX[despill]
        # [orig, mask, despilled] -> [despilled, mask]
        args += ["(", "-clone", "0", "-channel", channel, "-fx", fx, "+channel", ")", "-swap", "0,2", "+delete"]
    args += ["-alpha", "off", "-compose", copy_alpha, "-composite", "-compose", "over"]
    return args


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    background = ctx.require_input(args.background) if args.background else None
    out = ctx.prepare_output(args.outfile)

    cmd = keyed_args(
        inp,
        key=args.key,
        fuzz=args.fuzz,
        erode=args.erode,
        feather=args.feather,
        despill=args.despill,
        copy_alpha=ctx.toolchain.copy_alpha(),
    )
    if background is not None:
        w, h = ctx.runner.dimensions(inp)
        cmd += ["(", str(background), "-resize", f"{w}x{h}!", ")", "+swap", "-composite"]
    ctx.write(cmd, out)
    return None
