from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..runner import Context


NAME = "tile"
HELP = "Tile an image, optionally mirrored or rotated, across a larger canvas"

ARRANGEMENTS = ("repeat", "hmirror", "vmirror", "mirror", "rotate")


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-a", dest="arrangement", type=options.choice(*ARRANGEMENTS), default="repeat", help="repeat|hmirror|vmirror|mirror|rotate (default: repeat)")
    parser.add_argument("-r", dest="rows", type=options.int_range(1, 100), default=2, help="Rows of input-sized cells (default: 2)")
    parser.add_argument("-c", dest="columns", type=options.int_range(1, 100), default=2, help="Columns of input-sized cells (default: 2)")
    parser.add_argument("-S", dest="size", type=options.size, default=None, help="Output size WxH (overrides -r/-c)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def unit_args(arrangement: str, *, square: int | None = None) -> list[str]:
    if arrangement == "repeat":
        return []
    if arrangement == "hmirror":
        return ["(", "+clone", "-flop", ")", "+append"]
    if arrangement == "vmirror":
        return ["(", "+clone", "-flip", ")", "-append"]
    if arrangement == "mirror":
        return ["(", "+clone", "-flop", ")", "+append", "(", "+clone", "-flip", ")", "-append"]
    if arrangement == "rotate":
        # Quarter turns only line up on a square cell.
        assert square is not None
        return [
            "-gravity", "center", "-crop", f"{square}x{square}+0+0", "+repage", "+gravity",
            "(", "+clone", "-rotate", "90", ")", "+append",
            "(", "+clone", "-rotate", "180", ")", "-append",
        ]
    raise ValueError(f"unknown arrangement: {arrangement}")


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)

    w, h = ctx.runner.dimensions(inp)
    square = min(w, h) if args.arrangement == "rotate" else None
    if args.size is not None:
        ow, oh = args.size
    elif square is not None:
        ow, oh = args.columns * square, args.rows * square
    else:
        ow, oh = args.columns * w, args.rows * h

    cmd = [str(inp)] + unit_args(args.arrangement, square=square)
    cmd += ["-write", "mpr:tile", "+delete", "-size", f"{ow}x{oh}", "tile:mpr:tile"]
    ctx.write(cmd, out)
    return {"size": f"{ow}x{oh}"}
