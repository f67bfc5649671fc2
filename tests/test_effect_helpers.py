from __future__ import annotations

import math

import pytest

from magickfx.effects import EFFECTS
from magickfx.effects.aspect import aspect_args
from magickfx.effects.deconvolve import fft_size, psf_args
from magickfx.effects.gif import list_frames
from magickfx.effects.hexagon import hex_centers, hex_polygon
from magickfx.effects.kmeans import split_seeds
from magickfx.effects.mandala import petal_width
from magickfx.effects.multicrop import Component, is_foreground, mask_args, padded_box, parse_components
from magickfx.effects.pagepeel import fold_points
from magickfx.effects.retinex import retinex_args
from magickfx.effects.smartcrop import crop_origin, parse_max_location
from magickfx.effects.tile import unit_args
from magickfx.options import UsageError
from magickfx.runner import MagickError


def test_registry_names_match_modules() -> None:
    assert sorted(EFFECTS) == sorted(
        [
            "aspect",
            "gif",
            "greenscreen",
            "mandala",
            "halo",
            "deconvolve",
            "kmeans",
            "toon",
            "pagepeel",
            "tile",
            "hexagon",
            "smartcrop",
            "multicrop",
            "retinex",
            "dualgamma",
            "imagediff",
        ]
    )
    for name, module in EFFECTS.items():
        assert module.NAME == name
        assert module.HELP


def test_aspect_args_crop_and_pad() -> None:
    assert aspect_args((540, 960), mode="crop") == [
        "-resize", "540x960^", "-gravity", "center", "-crop", "540x960+0+0", "+repage",
    ]
    assert aspect_args((100, 50), mode="pad", color="white", gravity="north", resize_filter="Lanczos") == [
        "-filter", "Lanczos",
        "-resize", "100x50", "-background", "white", "-gravity", "north", "-extent", "100x50",
    ]
    with pytest.raises(ValueError):
        aspect_args((1, 1), mode="stretch")


@pytest.mark.parametrize(
    ("corner", "expected"),
    [
        ("se", ((399, 299), (309, 299), (399, 209), (309, 209))),
        ("sw", ((0, 299), (90, 299), (0, 209), (90, 209))),
        ("ne", ((399, 0), (309, 0), (399, 90), (309, 90))),
        ("nw", ((0, 0), (90, 0), (0, 90), (90, 90))),
    ],
)
def test_fold_points_reflect_corner(corner: str, expected: tuple) -> None:
    assert fold_points(400, 300, corner=corner, amount=30) == expected


def test_fold_tip_is_mirror_of_corner() -> None:
    c, a, b, tip = fold_points(640, 480, corner="se", amount=25)
    mid_fold = ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)
    mid_ct = ((c[0] + tip[0]) / 2, (c[1] + tip[1]) / 2)
    assert mid_fold == mid_ct


def test_hex_centers_cover_canvas() -> None:
    r = 10
    centers = hex_centers(100, 60, r)
    xs = [x for x, _ in centers]
    ys = [y for _, y in centers]
    assert min(xs) == 0 and min(ys) == 0
    assert max(xs) + math.sqrt(3) * r / 2 >= 100
    assert max(ys) + r >= 60
    # Odd rows are shifted by half a cell.
    row1 = sorted(x for x, y in centers if y == 15.0)
    assert row1[0] == pytest.approx(math.sqrt(3) * r / 2)


def test_hex_polygon_has_six_vertices() -> None:
    poly = hex_polygon(0, 0, 10)
    assert poly.startswith("polygon ")
    assert len(poly.split()[1:]) == 6
    assert "0.0,10.0" in poly


def test_petal_width() -> None:
    assert petal_width(512, 8) == round(math.pi * 512 / 16)
    assert petal_width(16, 64) == 1


def test_parse_components_and_foreground() -> None:
    listing = """Objects (id: bounding-box centroid area mean-color):
  0: 400x300+0+0 199.5,149.5 90000 gray(0)
  1: 120x80+20+30 79.5,69.5 9600 gray(255)
  4: 50x40+300+10 324.5,29.5 2000 srgb(255,255,255)
"""
    comps = parse_components(listing)
    assert [c.id for c in comps] == [0, 1, 4]
    assert comps[1] == Component(id=1, width=120, height=80, x=20, y=30, area=9600, color="gray(255)")
    assert [is_foreground(c.color) for c in comps] == [False, True, True]
    assert is_foreground("white")
    assert not is_foreground("black")
    assert not is_foreground("srgb(0,0,0)")


def test_padded_box_clamps_to_image() -> None:
    comp = Component(id=1, width=100, height=50, x=5, y=5, area=5000, color="gray(255)")
    assert padded_box(comp, 0, 400, 300) == "100x50+5+5"
    assert padded_box(comp, 10, 400, 300) == "115x65+0+0"
    assert padded_box(comp, 10, 110, 300) == "110x65+0+0"


def test_parse_max_location() -> None:
    text = "Image: -\n  Channel maximum locations:\n    Gray: 65535 (1) 12,34\n"
    assert parse_max_location(text) == (12, 34)
    with pytest.raises(MagickError):
        parse_max_location("Image: -\n")


def test_crop_origin_clamps() -> None:
    assert crop_origin(50, 40, 400) == 30
    assert crop_origin(5, 40, 400) == 0
    assert crop_origin(395, 40, 400) == 360


def test_unit_args_per_arrangement() -> None:
    assert unit_args("repeat") == []
    assert unit_args("hmirror")[-1] == "+append"
    assert unit_args("vmirror")[-1] == "-append"
    assert unit_args("mirror").count("(") == 2
    rotate = unit_args("rotate", square=120)
    assert "120x120+0+0" in rotate
    assert rotate.count("-rotate") == 2


def test_retinex_args_one_block_per_scale() -> None:
    args = retinex_args([15, 80], gain=100, autolevel=True)
    assert args[:3] == ["-write", "mpr:src", "+delete"]
    assert args.count("divide_src") == 2
    assert "0x15" in args and "0x80" in args
    assert args[-3:] == ["-evaluate-sequence", "mean", "-auto-level"]

    single = retinex_args([30], gain=50, autolevel=False)
    assert "-evaluate-sequence" not in single
    assert "-auto-level" not in single


def test_split_seeds() -> None:
    assert split_seeds(None) == []
    assert split_seeds("red; #00ff00 ;;blue") == ["red", "#00ff00", "blue"]


def test_list_frames_reference_is_first_entry(tmp_path) -> None:
    for name in ["00-cover.png", "frame1.jpg", "frame2.jpg", ".frame0.jpg"]:
        (tmp_path / name).write_bytes(b"x")
    reference, frames = list_frames(tmp_path, "*[0-9].jpg")
    assert reference.name == "00-cover.png"
    assert [p.name for p in frames] == ["frame1.jpg", "frame2.jpg"]


def test_list_frames_errors(tmp_path) -> None:
    with pytest.raises(UsageError, match="not found"):
        list_frames(tmp_path / "missing", "*")
    with pytest.raises(UsageError, match="is empty"):
        list_frames(tmp_path, "*")
    (tmp_path / "notes.txt").write_text("x", "utf-8")
    with pytest.raises(UsageError, match="no frames match"):
        list_frames(tmp_path, "*.jpg")


def test_psf_args_from_file_and_gaussian(tmp_path) -> None:
    psf = tmp_path / "psf.png"
    from_file = psf_args((101, 50), psf=psf, sigma=2.0)
    assert from_file[:7] == [str(psf), "-background", "black", "-gravity", "center", "-extent", "101x50"]
    assert from_file[-3:] == ["+gravity", "-roll", "-50-25"]

    gauss = psf_args((64, 64), psf=None, sigma=2.5)
    assert gauss[gauss.index("-gaussian-blur") + 1] == "0x2.5"
    assert "point 32,32" in gauss


@pytest.mark.parametrize(
    ("width", "height", "side"),
    [(400, 300, 400), (300, 400, 400), (201, 333, 334), (64, 64, 64), (1, 1, 2)],
)
def test_fft_size_is_even_square_of_long_side(width: int, height: int, side: int) -> None:
    assert fft_size(width, height) == side


def test_mask_args_fuzz_only_applies_to_background() -> None:
    args = mask_args("white", 10.0)
    assert args[:6] == ["-fuzz", "10%", "-fill", "black", "-opaque", "white"]
    # Near-black object pixels must not be spared by the second fill.
    assert args[6:] == ["-fuzz", "0%", "-fill", "white", "+opaque", "black"]
