from __future__ import annotations

import argparse
import re
from pathlib import Path
from typing import Any

from .. import options
from ..options import UsageError
from ..runner import Context, MagickError


NAME = "smartcrop"
HELP = "Crop to a size around the busiest region of the image"

LOCATION_RE = re.compile(r"(\d+),(\d+)\s*$")


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("size", type=options.size, help="Crop size WxH")
    parser.add_argument("-r", dest="scale", type=options.int_range(1, 100), default=25, help="Analysis scale percent 1..100 (default: 25)")
    parser.add_argument("-m", dest="method", type=options.choice("edge", "variance"), default="edge", help="Interest measure (default: edge)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def parse_max_location(text: str) -> tuple[int, int]:
    found = False
    for line in text.splitlines():
        if "maximum locations" in line.lower():
            found = True
            continue
        if found:
            m = LOCATION_RE.search(line)
            if m:
                return (int(m.group(1)), int(m.group(2)))
    raise MagickError("ImageMagick did not report a maximum location")


def crop_origin(center: float, span: int, limit: int) -> int:
    return int(min(max(round(center - span / 2), 0), limit - span))


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    ctx.toolchain.require("identify-locate")
    w, h = ctx.runner.dimensions(inp)
    cw, ch = args.size
    if cw > w or ch > h:
        raise UsageError(f"crop size {cw}x{ch} exceeds image size {w}x{h}")
    out = ctx.prepare_output(args.outfile)

    scale = args.scale / 100
    sw = max(1, round(cw * scale))
    sh = max(1, round(ch * scale))
    analysis = [str(inp), "-resize", f"{args.scale}%", *ctx.toolchain.colorspace_fixup(), "-colorspace", "gray"]
    if args.method == "edge":
        analysis += ["-edge", "1"]
    else:
        analysis += ["-statistic", "standarddeviation", "5x5"]
    analysis += ["-statistic", "mean", f"{sw}x{sh}", "miff:-"]
    locate = ["-define", "identify:locate=maximum", "-define", "identify:limit=1", "miff:-"]
    report = ctx.runner.capture_pipe(ctx.toolchain.convert + analysis, ctx.toolchain.identify + locate)
    sx, sy = parse_max_location(report)

    x = crop_origin(sx / scale, cw, w)
    y = crop_origin(sy / scale, ch, h)
    ctx.write([str(inp), "-crop", f"{cw}x{ch}+{x}+{y}", "+repage"], out)
    return {"offset": f"+{x}+{y}"}
