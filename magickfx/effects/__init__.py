from __future__ import annotations

from types import ModuleType

from . import (
    aspect,
    deconvolve,
    dualgamma,
    gif,
    greenscreen,
    halo,
    hexagon,
    imagediff,
    kmeans,
    mandala,
    multicrop,
    pagepeel,
    retinex,
    smartcrop,
    tile,
    toon,
)

EFFECTS: dict[str, ModuleType] = {
    m.NAME: m
    for m in (
        aspect,
        gif,
        greenscreen,
        mandala,
        halo,
        deconvolve,
        kmeans,
        toon,
        pagepeel,
        tile,
        hexagon,
        smartcrop,
        multicrop,
        retinex,
        dualgamma,
        imagediff,
    )
}
