from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..runner import Context


NAME = "aspect"
HELP = "Resize to an exact size, cropping or padding to keep the aspect ratio"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("size", type=options.size, help="Target size WxH")
    parser.add_argument("-m", dest="mode", type=options.choice("crop", "pad"), default="crop", help="crop or pad (default: crop)")
    parser.add_argument("-c", dest="color", type=options.color, default="black", help="Pad color (default: black)")
    parser.add_argument("-g", dest="gravity", type=options.gravity, default="center", help="Crop/pad anchor (default: center)")
    parser.add_argument("-f", dest="filter", default=None, help="Resize filter (default: ImageMagick's choice)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def aspect_args(
    size: tuple[int, int],
    *,
    mode: str,
    color: str = "black",
    gravity: str = "center",
    resize_filter: str | None = None,
) -> list[str]:
    box = f"{size[0]}x{size[1]}"
    args: list[str] = []
    if resize_filter:
        args += ["-filter", resize_filter]
    if mode == "crop":
        # Fill the box, then cut away the overflow.
        args += ["-resize", f"{box}^", "-gravity", gravity, "-crop", f"{box}+0+0", "+repage"]
    elif mode == "pad":
        args += ["-resize", box, "-background", color, "-gravity", gravity, "-extent", box]
    else:
        raise ValueError(f"unknown aspect mode: {mode}")
    return args


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)
    ctx.write(
        [str(inp)]
        + aspect_args(args.size, mode=args.mode, color=args.color, gravity=args.gravity, resize_filter=args.filter),
        out,
    )
    return None
