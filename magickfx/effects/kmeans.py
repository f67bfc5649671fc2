from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import UsageError, fmt_num
from ..runner import Context


NAME = "kmeans"
HELP = "Reduce an image to N colors by k-means clustering"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-n", dest="colors", type=options.int_range(2, 256), default=8, help="Number of colors 2..256 (default: 8)")
    parser.add_argument("-i", dest="iterations", type=options.int_range(1, 10000), default=100, help="Maximum iterations (default: 100)")
    parser.add_argument("-t", dest="tolerance", type=options.float_range(0, 1), default=0.0001, help="Convergence tolerance 0..1 (default: 0.0001)")
    parser.add_argument("-s", dest="seeds", default=None, help="Seed colors separated by ';' (at most -n of them)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def split_seeds(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [s.strip() for s in raw.split(";") if s.strip()]


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    seeds = split_seeds(args.seeds)
    if len(seeds) > args.colors:
        raise UsageError(f"{len(seeds)} seed colors given but -n is {args.colors}")
    out = ctx.prepare_output(args.outfile)

    cmd = [str(inp)]
    if ctx.toolchain.supports("kmeans"):
        method = "kmeans"
        if seeds:
            cmd += ["-define", f"kmeans:seed-colors={';'.join(seeds)}"]
        cmd += ["-kmeans", f"{args.colors}x{args.iterations}+{fmt_num(args.tolerance)}"]
    else:
        method = "colors"
        ctx.runner.warn(
            f"-kmeans needs ImageMagick 7.0.10-37 (found {ctx.toolchain.version_str}); "
            "falling back to -colors quantization"
        )
        cmd += ["+dither", "-colors", str(args.colors)]
    ctx.write(cmd, out)
    return {"method": method}
