from __future__ import annotations

import argparse
import decimal
import re
from typing import Callable


GRAVITIES = (
    "northwest",
    "north",
    "northeast",
    "west",
    "center",
    "east",
    "southwest",
    "south",
    "southeast",
)


class UsageError(ValueError):
    pass


def int_range(lo: int, hi: int | None = None) -> Callable[[str], int]:
    def parse(value: str) -> int:
        if not re.fullmatch(r"\s*[+-]?\d+\s*", value):
            raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
        n = int(value)
        if n < lo or (hi is not None and n > hi):
            bound = f"{lo}..{hi}" if hi is not None else f">= {lo}"
            raise argparse.ArgumentTypeError(f"{n} out of range (must be {bound})")
        return n

    return parse


def float_range(lo: float, hi: float | None = None) -> Callable[[str], float]:
    def parse(value: str) -> float:
        if not re.fullmatch(r"\s*[+-]?(\d+\.?\d*|\.\d+)\s*", value):
            raise argparse.ArgumentTypeError(f"expected a number, got {value!r}")
        x = float(value)
        if x < lo or (hi is not None and x > hi):
            bound = f"{lo:g}..{hi:g}" if hi is not None else f">= {lo:g}"
            raise argparse.ArgumentTypeError(f"{value.strip()} out of range (must be {bound})")
        return x

    return parse


def choice(*names: str) -> Callable[[str], str]:
    allowed = tuple(n.lower() for n in names)

    def parse(value: str) -> str:
        v = value.strip().lower()
        if v not in allowed:
            raise argparse.ArgumentTypeError(f"{value!r} is not one of: {'|'.join(allowed)}")
        return v

    return parse


def yes_no(value: str) -> bool:
    v = value.strip().lower()
    if v in {"yes", "y", "true", "on", "1"}:
        return True
    if v in {"no", "n", "false", "off", "0"}:
        return False
    raise argparse.ArgumentTypeError(f"{value!r} is not yes|no")


def gravity(value: str) -> str:
    return choice(*GRAVITIES)(value)


def color(value: str) -> str:
    v = value.strip()
    if not v:
        raise argparse.ArgumentTypeError("color must not be empty")
    return v


def size(value: str) -> tuple[int, int]:
    # WxH
    m = re.fullmatch(r"\s*(\d+)\s*x\s*(\d+)\s*", value)
    if not m:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r} (expected WxH)")
    w = int(m.group(1))
    h = int(m.group(2))
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r} (W and H must be > 0)")
    return (w, h)


def point(value: str) -> tuple[int, int]:
    m = re.fullmatch(r"\s*(\d+)\s*,\s*(\d+)\s*", value)
    if not m:
        raise argparse.ArgumentTypeError(f"invalid point: {value!r} (expected X,Y)")
    return (int(m.group(1)), int(m.group(2)))


def csv_floats(lo: float = 0.0) -> Callable[[str], list[float]]:
    one = float_range(lo)

    def parse(value: str) -> list[float]:
        parts = [p for p in value.split(",") if p.strip()]
        if not parts:
            raise argparse.ArgumentTypeError("expected a comma separated list of numbers")
        return [one(p) for p in parts]

    return parse


def fmt_num(x: float) -> str:
    # Plain decimals only: no exponent, no rounding, no trailing ".0".
    s = format(decimal.Decimal(repr(x)), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return "0" if s == "-0" else s
