from __future__ import annotations

import argparse
import math
from pathlib import Path
from typing import Any, Iterator, Sequence, TypeVar

from .. import options
from ..options import fmt_num
from ..runner import Context, MagickError


NAME = "hexagon"
HELP = "Hexagon mosaic: each cell filled with the local average color"

SQRT3 = math.sqrt(3)
QUERY_BATCH = 400
DRAW_BATCH = 500

T = TypeVar("T")


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", dest="radius", type=options.int_range(4, 200), default=16, help="Cell radius in pixels 4..200 (default: 16)")
    parser.add_argument("-e", dest="edge", type=options.color, default="none", help="Cell outline color (default: none)")
    parser.add_argument("-w", dest="edge_width", type=options.int_range(1, 20), default=1, help="Cell outline width 1..20 (default: 1)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def hex_centers(width: int, height: int, radius: float) -> list[tuple[float, float]]:
    """Centers of pointy-top hexagons covering a width x height canvas."""
    col_step = SQRT3 * radius
    row_step = 1.5 * radius
    centers: list[tuple[float, float]] = []
    row = 0
    y = 0.0
    while y - radius <= height:
        x = col_step / 2 if row % 2 else 0.0
        while x - col_step / 2 <= width:
            centers.append((x, y))
            x += col_step
        row += 1
        y = row * row_step
    return centers


def hex_polygon(cx: float, cy: float, radius: float) -> str:
    pts = []
    for k in range(6):
        a = math.radians(30 + 60 * k)
        pts.append(f"{cx + radius * math.cos(a):.1f},{cy + radius * math.sin(a):.1f}")
    return "polygon " + " ".join(pts)


def batched(items: Sequence[T], n: int) -> Iterator[Sequence[T]]:
    for i in range(0, len(items), n):
        yield items[i : i + n]


def sample_colors(ctx: Context, source: Path, points: list[tuple[int, int]], pre: Sequence[str] = ()) -> list[str]:
    colors: list[str] = []
    for chunk in batched(points, QUERY_BATCH):
        fmt = ";".join(f"%[pixel:p{{{x},{y}}}]" for x, y in chunk)
        raw = ctx.runner.query(source, fmt, pre).strip()
        got = [c.strip() for c in raw.split(";")]
        if len(got) != len(chunk):
            raise MagickError(f"expected {len(chunk)} colors from ImageMagick, got {len(got)}")
        colors.extend(got)
    return colors


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)

    w, h = ctx.runner.dimensions(inp)
    r = args.radius
    centers = hex_centers(w, h, r)
    samples = [(min(max(round(x), 0), w - 1), min(max(round(y), 0), h - 1)) for x, y in centers]
    blur = ["-blur", f"0x{fmt_num(r / 2)}"]
    if ctx.dry_run:
        # The blurred copy is not written in a dry run; blur per query instead.
        colors = sample_colors(ctx, inp, samples, blur)
    else:
        blurred = ctx.scratch("blurred")
        ctx.runner.convert([str(inp), *blur, str(blurred)])
        colors = sample_colors(ctx, blurred, samples)

    draws: list[list[str]] = []
    for (cx, cy), fill in zip(centers, colors):
        stroke = fill if args.edge == "none" else args.edge
        draws.append(["-fill", fill, "-stroke", stroke, "-draw", hex_polygon(cx, cy, r)])

    # Large grids are drawn in several passes to keep each argv short.
    canvas = [ctx.scratch("hex-a"), ctx.scratch("hex-b")]
    ctx.runner.convert(["-size", f"{w}x{h}", "xc:none", str(canvas[0])])
    batches = list(batched(draws, DRAW_BATCH))
    for i, batch in enumerate(batches):
        cmd = [str(canvas[i % 2]), "-strokewidth", str(args.edge_width)]
        for d in batch:
            cmd += d
        if i == len(batches) - 1:
            ctx.write(cmd, out)
        else:
            ctx.runner.convert(cmd + [str(canvas[(i + 1) % 2])])
    return {"cells": len(centers)}
