from __future__ import annotations

import argparse
import dataclasses
import re
from pathlib import Path
from typing import Any

from .. import options
from ..options import UsageError, fmt_num
from ..runner import Context, MagickError


NAME = "multicrop"
HELP = "Split a scan of several photos on a plain background into one file per photo"

# "  12: 200x150+10+20 109.5,94.5 30000 gray(255)"
OBJECT_RE = re.compile(r"^\s*(\d+):\s+(\d+)x(\d+)\+(\d+)\+(\d+)\s+\S+\s+(\d+)\s+(\S+)")


@dataclasses.dataclass(frozen=True)
class Component:
    id: int
    width: int
    height: int
    x: int
    y: int
    area: int
    color: str


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", dest="background", default="0,0", help="Background color, or X,Y of a pixel to sample it from (default: 0,0)")
    parser.add_argument("-f", dest="fuzz", type=options.float_range(0, 100), default=10.0, help="Background fuzz percent 0..100 (default: 10)")
    parser.add_argument("-a", dest="area", type=options.int_range(1), default=1000, help="Minimum object area in pixels (default: 1000)")
    parser.add_argument("-d", dest="deskew", type=options.float_range(0, 100), default=None, help="Deskew threshold percent 0..100 (default: off)")
    parser.add_argument("-p", dest="pad", type=options.int_range(0, 1000), default=0, help="Extra pixels around each object (default: 0)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outbase", type=Path, help="Output name; objects are written as <stem>-N<suffix>")


def parse_components(text: str) -> list[Component]:
    comps = []
    for line in text.splitlines():
        m = OBJECT_RE.match(line)
        if not m:
            continue
        comps.append(
            Component(
                id=int(m.group(1)),
                width=int(m.group(2)),
                height=int(m.group(3)),
                x=int(m.group(4)),
                y=int(m.group(5)),
                area=int(m.group(6)),
                color=m.group(7),
            )
        )
    return comps


def is_foreground(color: str) -> bool:
    c = color.strip().lower()
    if c in {"white", "black"}:
        return c == "white"
    nums = re.findall(r"[\d.]+", c.split("(", 1)[-1])
    return bool(nums) and all(float(n) > 0 for n in nums)


def padded_box(comp: Component, pad: int, width: int, height: int) -> str:
    x0 = max(comp.x - pad, 0)
    y0 = max(comp.y - pad, 0)
    x1 = min(comp.x + comp.width + pad, width)
    y1 = min(comp.y + comp.height + pad, height)
    return f"{x1 - x0}x{y1 - y0}+{x0}+{y0}"


def mask_args(background: str, fuzz: float) -> list[str]:
    """Background to black, everything else to white."""
    return [
        "-fuzz", f"{fmt_num(fuzz)}%", "-fill", "black", "-opaque", background,
        # Only the background match is fuzzy; dark object pixels must still turn white.
        "-fuzz", "0%", "-fill", "white", "+opaque", "black",
    ]


def resolve_background(ctx: Context, inp: Path, value: str) -> str:
    try:
        x, y = options.point(value)
    except argparse.ArgumentTypeError:
        if not value.strip():
            raise UsageError("background color must not be empty")
        return value.strip()
    return ctx.runner.query(inp, f"%[pixel:p{{{x},{y}}}]").strip()


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    ctx.toolchain.require("connected-components")
    w, h = ctx.runner.dimensions(inp)
    bg = resolve_background(ctx, inp, args.background)

    mask = mask_args(bg, args.fuzz)
    listing = ctx.runner.capture(
        ctx.toolchain.convert
        + [str(inp), *mask]
        + [
            "-define", "connected-components:verbose=true",
            "-define", f"connected-components:area-threshold={args.area}",
            "-connected-components", "8",
            "null:",
        ]
    )
    objects = [c for c in parse_components(listing) if is_foreground(c.color) and c.area >= args.area]
    if not objects:
        raise MagickError(f"no objects larger than {args.area} pixels found against background {bg}")

    base = args.outbase
    outs = [ctx.prepare_output(base.with_name(f"{base.stem}-{n}{base.suffix}")) for n in range(1, len(objects) + 1)]
    for comp, out in zip(objects, outs):
        cmd = [str(inp), "-crop", padded_box(comp, args.pad, w, h), "+repage"]
        if args.deskew is not None:
            cmd += ["-background", bg, "-deskew", f"{fmt_num(args.deskew)}%", "+repage"]
            cmd += ["-fuzz", f"{fmt_num(args.fuzz)}%", "-trim", "+repage"]
        ctx.write(cmd, out)
    return {"background": bg, "objects": len(objects)}
