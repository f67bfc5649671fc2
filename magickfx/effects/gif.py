from __future__ import annotations

import argparse
import fnmatch
from pathlib import Path
from typing import Any

from .. import options
from ..options import UsageError
from ..runner import Context
from .aspect import aspect_args


NAME = "gif"
HELP = "Normalize a directory of frames to one size and assemble an animated GIF"


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", dest="size", type=options.size, default=(540, 960), help="Frame size WxH (default: 540x960)")
    parser.add_argument("-d", dest="delay", type=options.int_range(0), default=150, help="Delay per frame in ticks (default: 150)")
    parser.add_argument("-l", dest="loop", type=options.int_range(0), default=0, help="Loop count, 0 = forever (default: 0)")
    parser.add_argument(
        "-D",
        dest="dispose",
        type=options.choice("undefined", "none", "background", "previous"),
        default="previous",
        help="Frame disposal (default: previous)",
    )
    parser.add_argument("-c", dest="color", type=options.color, default="black", help="Pad color (default: black)")
    parser.add_argument("-p", dest="pattern", default="*[0-9].jpg", help="Frame glob (default: *[0-9].jpg)")
    parser.add_argument("framedir", type=Path)
    parser.add_argument("outfile", type=Path)


def list_frames(framedir: Path, pattern: str) -> tuple[Path, list[Path]]:
    """Return (reference, frames); the reference is the first entry of the directory."""
    if not framedir.is_dir():
        raise UsageError(f"frame directory not found: {framedir}")
    entries = sorted(p for p in framedir.iterdir() if p.is_file() and not p.name.startswith("."))
    if not entries:
        raise UsageError(f"frame directory is empty: {framedir}")
    frames = [p for p in entries if fnmatch.fnmatch(p.name, pattern)]
    if not frames:
        raise UsageError(f"no frames match {pattern!r} in {framedir}")
    return (entries[0], frames)


def run(args: argparse.Namespace, ctx: Context) -> dict[str, Any] | None:
    reference, frames = list_frames(args.framedir, args.pattern)
    out = ctx.prepare_output(args.outfile)
    ref_size = ctx.runner.dimensions(reference)

    cropped: list[str] = []
    for i, frame in enumerate(frames):
        padded = ctx.scratch(f"padded-{i:04d}")
        ctx.runner.convert([str(frame)] + aspect_args(ref_size, mode="pad", color=args.color) + [str(padded)])
        target = ctx.scratch(f"cropped-{i:04d}")
        ctx.runner.convert([str(padded)] + aspect_args(args.size, mode="crop") + [str(target)])
        cropped.append(str(target))

    ctx.write(["-delay", str(args.delay), "-loop", str(args.loop), "-dispose", args.dispose, *cropped], out)
    return {"frames": len(frames), "reference": str(reference), "reference_size": f"{ref_size[0]}x{ref_size[1]}"}
