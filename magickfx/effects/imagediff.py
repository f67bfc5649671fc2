from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import fmt_num
from ..runner import Context

NAME = "imagediff"
HELP = "Measure the difference between two images and optionally write a difference map"

METRICS = ("ae", "mae", "mse", "rmse", "psnr", "ncc")
# compare exits 0 for similar, 1 for dissimilar and 2 on error.
COMPARE_OK = (0, 1)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-m", dest="metric", type=options.choice(*METRICS), default="rmse", help="ae|mae|mse|rmse|psnr|ncc (default: rmse)")
    parser.add_argument("-f", dest="fuzz", type=options.float_range(0, 100), default=0.0, help="Color fuzz percent 0..100 (default: 0)")
    parser.add_argument("-c", dest="highlight", type=options.color, default="red", help="Highlight color for differences (default: red)")
    parser.add_argument("-l", dest="lowlight", type=options.color, default=None, help="Lowlight color for matching pixels")
    parser.add_argument("image1", type=Path)
    parser.add_argument("image2", type=Path)
    parser.add_argument("diffout", type=Path, nargs="?", default=None)


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    first = ctx.require_input(args.image1)
    second = ctx.require_input(args.image2)
    out = ctx.prepare_output(args.diffout) if args.diffout else None

    cmd = ["-metric", args.metric.upper()]
    if args.fuzz > 0:
        cmd += ["-fuzz", f"{fmt_num(args.fuzz)}%"]
    cmd += ["-highlight-color", args.highlight]
    if args.lowlight:
        cmd += ["-lowlight-color", args.lowlight]
    cmd += [str(first), str(second)]

    if out is not None:
        proc = ctx.write(cmd, out, tool=ctx.toolchain.compare, ok_codes=COMPARE_OK)
    else:
        proc = ctx.runner.run(ctx.toolchain.compare + cmd + ["null:"], ok_codes=COMPARE_OK)
    # compare reports the metric on stderr.
    value = proc.stderr.strip()
    return {"metric": args.metric, "value": value, "similar": proc.returncode == 0}
