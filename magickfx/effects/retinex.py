from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import fmt_num
from ..runner import Context


NAME = "retinex"
HELP = "Multiscale retinex: even out lighting by dividing by blurred copies"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", dest="scales", type=options.csv_floats(0.1), default=[15.0, 80.0, 250.0], help="Blur sigmas, comma separated (default: 15,80,250)")
    parser.add_argument("-g", dest="gain", type=options.float_range(0.1, 10000), default=100.0, help="Log compression gain (default: 100)")
    parser.add_argument("-c", dest="autolevel", type=options.yes_no, default=True, help="Auto-level the result yes|no (default: yes)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def retinex_args(scales: list[float], *, gain: float, autolevel: bool) -> list[str]:
    args = ["-write", "mpr:src", "+delete"]
    for sigma in scales:
        args += [
            "(", "mpr:src",
            "(", "mpr:src", "-blur", f"0x{fmt_num(sigma)}", ")",
            "-compose", "divide_src", "-composite",
            "-evaluate", "log", fmt_num(gain),
            ")",
        ]
    if len(scales) > 1:
        args += ["-evaluate-sequence", "mean"]
    if autolevel:
        args += ["-auto-level"]
    return args


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    out = ctx.prepare_output(args.outfile)
    ctx.write([str(inp)] + retinex_args(args.scales, gain=args.gain, autolevel=args.autolevel), out)
    return None
