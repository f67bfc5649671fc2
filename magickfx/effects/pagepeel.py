from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..runner import Context


NAME = "pagepeel"
HELP = "Fold back one corner of the image like a peeling page"

Point = tuple[int, int]


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-a", dest="amount", type=options.int_range(5, 50), default=30, help="Fold size as percent of the short side 5..50 (default: 30)")
    parser.add_argument("-g", dest="corner", type=options.choice("ne", "nw", "se", "sw"), default="se", help="Corner to peel (default: se)")
    parser.add_argument("-c", dest="color", type=options.color, default="white", help="Back-of-page color (default: white)")
    parser.add_argument("-b", dest="background", type=options.color, default="none", help="Color behind the cut corner (default: none)")
    parser.add_argument("-s", dest="shadow", type=options.int_range(0, 100), default=60, help="Shadow opacity percent 0..100 (default: 60)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def fold_points(width: int, height: int, *, corner: str, amount: int) -> tuple[Point, Point, Point, Point]:
    """Return (corner, edge_a, edge_b, folded_tip) for a 45 degree fold.

    The fold line runs from edge_a to edge_b; reflecting the corner across it
    lands on folded_tip.
    """
    a = max(1, round(min(width, height) * amount / 100))
    east = corner.endswith("e")
    south = corner.startswith("s")
    cx = width - 1 if east else 0
    cy = height - 1 if south else 0
    dx = -a if east else a
    dy = -a if south else a
    return ((cx, cy), (cx + dx, cy), (cx, cy + dy), (cx + dx, cy + dy))


def _polygon(*points: Point) -> str:
    return "polygon " + " ".join(f"{x},{y}" for x, y in points)


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)

    w, h = ctx.runner.dimensions(inp)
    c, p1, p2, tip = fold_points(w, h, corner=args.corner, amount=args.amount)
    fold = abs(p1[0] - c[0])
    sigma = max(1, round(fold * 0.05))
    offset = max(1, round(fold * 0.03))
    canvas = f"{w}x{h}"

    cmd = [str(inp), "-alpha", "set"]
    cmd += ["(", "-size", canvas, "xc:none", "-fill", "white", "-draw", _polygon(p1, c, p2), ")"]
    cmd += ["-compose", "dst_out", "-composite"]
    cmd += ["(", "-size", canvas, "xc:none", "-fill", args.color, "-draw", _polygon(p1, tip, p2), ")"]
    if args.shadow > 0:
        cmd += ["(", "+clone", "-background", "black", "-shadow", f"{args.shadow}x{sigma}+{offset}+{offset}", ")", "+swap"]
    cmd += ["-background", args.background, "-compose", "over", "-layers", "flatten"]
    ctx.write(cmd, out)
    return {"fold": fold}
