from __future__ import annotations

import pytest
from PIL import Image

import sna
import sna_preview
import sna_thumbnail


def _bright_white_snapshot() -> bytes:
    data = bytearray(sna.SNA_FILE_SIZE)
    for offset in range(sna.SNA_ATTRIBUTES_OFFSET, sna.SNA_ATTRIBUTES_OFFSET + 768):
        data[offset] = 0b01111111
    return bytes(data)


@pytest.mark.parametrize(
    "bounds, expected",
    [
        ((256, 192), (256, 192)),
        ((1000, 300), (400, 300)),
        ((300, 1000), (300, 225)),
        ((128, 128), (128, 96)),
        ((1, 1), (1, 1)),
    ],
)
def test_fit_size_keeps_aspect_ratio(bounds: tuple, expected: tuple) -> None:
    assert sna_preview.fit_size((256, 192), bounds) == expected


def test_preview_scales_to_panel() -> None:
    image = sna_preview.preview_sna_data(_bright_white_snapshot(), (1024, 1024))

    assert image.size == (1024, 768)
    assert image.getextrema() == ((255, 255), (255, 255), (255, 255))


def test_preview_scales_down() -> None:
    image = sna_preview.preview_sna_data(bytes(sna.SNA_FILE_SIZE), (128, 600))

    assert image.size == (128, 96)


def test_preview_file_decodes_snapshot(tmp_path) -> None:
    source = tmp_path / "screen.sna"
    source.write_bytes(_bright_white_snapshot())

    image = sna_preview.preview_sna_file(str(source), (512, 384))

    assert image.size == (512, 384)
    assert image.getpixel((0, 0)) == (255, 255, 255)


def _assert_is_error_image(image: Image.Image) -> None:
    assert image.size == (256, 192)
    red, green, blue = image.getextrema()
    assert red[1] > 0
    assert green == (0, 0)
    assert blue == (0, 0)


def test_preview_file_with_wrong_size_shows_error_image(tmp_path) -> None:
    source = tmp_path / "short.sna"
    source.write_bytes(bytes(100))

    _assert_is_error_image(sna_preview.preview_sna_file(str(source), (512, 384)))


def test_preview_missing_file_shows_error_image(tmp_path) -> None:
    _assert_is_error_image(sna_preview.preview_sna_file(str(tmp_path / "missing.sna")))


def test_render_error_image_handles_long_messages() -> None:
    image = sna_preview.render_error_image("Error reading file: " + "x" * 500)

    _assert_is_error_image(image)


def test_thumbnail_is_square_and_centred() -> None:
    image = sna_thumbnail.thumbnail_sna_data(_bright_white_snapshot(), 128)

    assert image.size == (128, 128)
    assert image.getbbox() == (0, 16, 128, 112)
    assert image.getpixel((64, 0)) == (0, 0, 0)
    assert min(image.getpixel((64, 64))) >= 250


def test_thumbnail_other_size() -> None:
    image = sna_thumbnail.thumbnail_sna_data(_bright_white_snapshot(), 64)

    assert image.size == (64, 64)
    assert image.getbbox() == (0, 8, 64, 56)


def test_thumbnail_file_declines_bad_snapshot(tmp_path) -> None:
    source = tmp_path / "long.sna"
    source.write_bytes(bytes(sna.SNA_FILE_SIZE + 1))

    assert sna_thumbnail.thumbnail_sna_file(str(source)) is None
    assert sna_thumbnail.thumbnail_sna_file(str(tmp_path / "missing.sna")) is None


def test_thumbnail_main_exits_without_thumbnail(tmp_path, monkeypatch) -> None:
    source = tmp_path / "bad.sna"
    source.write_bytes(b"not a snapshot")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("sys.argv", ["sna_thumbnail.py", str(source)])

    with pytest.raises(SystemExit) as excinfo:
        sna_thumbnail.sna_thumbnail_main()

    assert excinfo.value.code == 1
    assert not (tmp_path / "bad.sna_thumbnail.png").exists()


def test_preview_main_writes_png(tmp_path, monkeypatch) -> None:
    source = tmp_path / "game.sna"
    source.write_bytes(_bright_white_snapshot())
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("sys.argv", ["sna_preview.py", str(source), "300", "300"])

    sna_preview.sna_preview_main()

    with Image.open(tmp_path / "game.sna_preview.png") as image:
        assert image.size == (300, 225)
