from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .. import options
from ..options import UsageError, fmt_num
from ..runner import Context


NAME = "deconvolve"
HELP = "Sharpen a blurred image by FFT division with a point spread function"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    psf = parser.add_mutually_exclusive_group()
    psf.add_argument("-p", dest="psf", type=Path, default=None, help="Point spread function image")
    psf.add_argument("-r", dest="sigma", type=options.float_range(0.1, 100), default=None, help="Gaussian PSF sigma (default: 2)")
    parser.add_argument("-n", dest="snr", type=options.float_range(0), default=0.01, help="Noise to signal ratio >= 0 (default: 0.01)")
    parser.add_argument("infile", type=Path)
    parser.add_argument("outfile", type=Path)


def fft_size(width: int, height: int) -> int:
    """Side of the even square that +fft pads a width x height image to."""
    n = max(width, height)
    return n + n % 2


def psf_args(size: tuple[int, int], *, psf: Path | None, sigma: float) -> list[str]:
    """Build a PSF on the FFT canvas, centered on the origin."""
    w, h = size
    box = f"{w}x{h}"
    if psf is not None:
        args = [str(psf), "-background", "black", "-gravity", "center", "-extent", box]
    else:
        args = [
            "-size", box, "xc:black",
            "-fill", "white", "-draw", f"point {w // 2},{h // 2}",
            "-gaussian-blur", f"0x{fmt_num(sigma)}",
        ]
    args += ["+gravity", "-roll", f"-{w // 2}-{h // 2}"]
    return args


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    inp = ctx.require_input(args.infile)
    if args.psf is not None and not args.psf.is_file():
        raise UsageError(f"psf not found: {args.psf}")
    ctx.toolchain.require("complex")
    out = ctx.prepare_output(args.outfile)

    w, h = ctx.runner.dimensions(inp)
    # Input and PSF share the padded square so the PSF tails wrap around the origin.
    n = fft_size(w, h)
    sigma = 2.0 if args.sigma is None else args.sigma
    psf = ctx.scratch("psf")
    ctx.runner.convert(psf_args((n, n), psf=args.psf, sigma=sigma) + [str(psf)])

    cmd = [
        str(inp), "-background", "black", "+gravity", "-extent", f"{n}x{n}",
        str(psf),
        "-define", "fourier:normalize=inverse",
        "+fft",
    ]
    if args.snr > 0:
        cmd += ["-define", f"complex:snr={fmt_num(args.snr)}"]
    cmd += [
        "-complex", "divide",
        "+ift",
        "-crop", f"{w}x{h}+0+0", "+repage",
    ]
    ctx.write(cmd, out)
    return {"fft_size": f"{n}x{n}"}
