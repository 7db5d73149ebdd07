#!/usr/bin/env python3

"""SNA screen decoder and viewer

An SNA file is a snapshot of a 48K ZX Spectrum: a 27-byte header
holding the Z80 register state, followed by the full 48K of RAM
starting at address 0x4000. The first 6912 bytes of that RAM are the
screen, so a picture of whatever was on the display when the snapshot
was taken can be recovered from every SNA file without emulating
anything.

The screen is 256 pixels x 192 lines. The bitmap holds one bit per
pixel, 32 bytes per line, most significant bit leftmost. The lines are
not stored top to bottom: the screen is split into three thirds of 64
lines, and inside each third the video memory holds the first pixel
line of each of the eight character rows, then the second pixel line
of each, and so on. Seen on a real machine while loading, the screen
fills in like a venetian blind. Swapping the two 3-bit groups in the
middle of the line number undoes this.

Colour comes from a separate 768-byte attribute area, one byte per
8x8 character cell:

    bit 7    flash (swap ink and paper periodically)
    bit 6    bright
    bits 5-3 paper colour
    bits 2-0 ink colour

A colour index is a GRB triple: bit 0 blue, bit 1 red, bit 2
green. Non-bright colours are rendered at 7/8 intensity. Flash is not
rendered; the decoded image always shows the non-inverted state.

"""

from PIL import Image
from PIL.PngImagePlugin import PngInfo

import os
import sys
from typing import NamedTuple

SNA_VERBOSE_DEBUGGING = False

SNA_FILE_SIZE = 49179
SNA_STATE_OFFSET = 0
SNA_STATE_SIZE = 27
SNA_DISPLAY_OFFSET = SNA_STATE_OFFSET + SNA_STATE_SIZE
SNA_DISPLAY_SIZE = 32 * 192
SNA_ATTRIBUTES_OFFSET = SNA_DISPLAY_OFFSET + SNA_DISPLAY_SIZE
SNA_ATTRIBUTES_SIZE = 32 * 24

SNA_SCREEN_WIDTH = 256
SNA_SCREEN_HEIGHT = 192
SNA_CELL_COLUMNS = SNA_SCREEN_WIDTH // 8
SNA_CELL_ROWS = SNA_SCREEN_HEIGHT // 8
SNA_BYTES_PER_PIXEL = 3
SNA_BYTES_PER_ROW = SNA_SCREEN_WIDTH * SNA_BYTES_PER_PIXEL
SNA_PIXEL_BUFFER_SIZE = SNA_BYTES_PER_ROW * SNA_SCREEN_HEIGHT

FULL_INTENSITY = 0xFF


class SnaSizeMismatch(ValueError):
    """Raised when the data handed to the decoder is not exactly one
    48K snapshot long. Nothing is decoded in that case.

    """

    def __init__(self, expected: int, actual: int):
        super().__init__(
            "Invalid .sna file size: %(actual)d bytes (expected %(expected)d)"
            % dict(actual=actual, expected=expected)
        )
        self.expected = expected
        self.actual = actual


class SnaRegions(NamedTuple):
    state: bytes
    display: bytes
    attributes: bytes


class CellAttributes(NamedTuple):
    ink: int
    paper: int
    bright: bool
    flash: bool


def check_sna_size(sna_data):
    if len(sna_data) != SNA_FILE_SIZE:
        raise SnaSizeMismatch(expected=SNA_FILE_SIZE, actual=len(sna_data))


def split_sna_regions(sna_data) -> SnaRegions:
    """Given binary SNA data, returns the machine state, display
    bitmap and colour attribute regions as separate byte strings.

    """
    check_sna_size(sna_data)
    sna_data = bytes(sna_data)
    regions = SnaRegions(
        state=sna_data[SNA_STATE_OFFSET : SNA_STATE_OFFSET + SNA_STATE_SIZE],
        display=sna_data[SNA_DISPLAY_OFFSET : SNA_DISPLAY_OFFSET + SNA_DISPLAY_SIZE],
        attributes=sna_data[
            SNA_ATTRIBUTES_OFFSET : SNA_ATTRIBUTES_OFFSET + SNA_ATTRIBUTES_SIZE
        ],
    )
    for name, region, expected_size in (
        ("state", regions.state, SNA_STATE_SIZE),
        ("display", regions.display, SNA_DISPLAY_SIZE),
        ("attributes", regions.attributes, SNA_ATTRIBUTES_SIZE),
    ):
        assert len(region) == expected_size, (
            "%(name)s region is %(actual)d bytes, expected %(expected_size)d"
            % dict(name=name, actual=len(region), expected_size=expected_size)
        )
    return regions


def venetian_blind_row(y):
    """Given a screen line y (0 at the top), returns the index of the
    32-byte line in display memory holding its pixels.

    """
    assert y in range(SNA_SCREEN_HEIGHT), "y must be a screen line"
    return (y & 0b11000000) | ((y & 0b00000111) << 3) | ((y & 0b00111000) >> 3)


def decode_cell_attributes(attribute_byte) -> CellAttributes:
    return CellAttributes(
        ink=attribute_byte & 0x07,
        paper=(attribute_byte >> 3) & 0x07,
        bright=bool(attribute_byte & 0x40),
        flash=bool(attribute_byte & 0x80),
    )


def dim(c):
    return c * 7 // 8


def color_index_to_rgb(color_index, bright):
    """Given a 3-bit GRB colour index and the bright flag, returns the
    (red, green, blue) triple for it.

    """
    assert color_index in range(8), "colour index must be 0..7"
    rgb = (
        FULL_INTENSITY if color_index & 0b010 else 0x00,
        FULL_INTENSITY if color_index & 0b100 else 0x00,
        FULL_INTENSITY if color_index & 0b001 else 0x00,
    )
    if not bright:
        rgb = tuple(dim(c) for c in rgb)
    return rgb


def decode_sna_pixels(sna_data) -> bytes:
    """Given binary SNA data as input, returns the screen as RGB24
    pixel data: 256 x 192 pixels, three bytes per pixel, rows top to
    bottom with no padding. Raises SnaSizeMismatch if the data is not
    exactly one 48K snapshot.

    """
    regions = split_sna_regions(sna_data)
    pixels = bytearray(SNA_PIXEL_BUFFER_SIZE)
    for cell_row in range(SNA_CELL_ROWS):
        for cell_column in range(SNA_CELL_COLUMNS):
            attributes = decode_cell_attributes(
                regions.attributes[cell_row * SNA_CELL_COLUMNS + cell_column]
            )
            ink_rgb = color_index_to_rgb(attributes.ink, attributes.bright)
            paper_rgb = color_index_to_rgb(attributes.paper, attributes.bright)
            if SNA_VERBOSE_DEBUGGING:
                print(
                    "cell",
                    dict(
                        cell_row=cell_row,
                        cell_column=cell_column,
                        attributes=attributes,
                        ink_rgb=ink_rgb,
                        paper_rgb=paper_rgb,
                    ),
                )
            for pixel_y in range(8):
                y = cell_row * 8 + pixel_y
                data_byte = regions.display[
                    venetian_blind_row(y) * SNA_CELL_COLUMNS + cell_column
                ]
                offset = y * SNA_BYTES_PER_ROW + cell_column * 8 * SNA_BYTES_PER_PIXEL
                for i in range(8):
                    rgb = ink_rgb if data_byte & (0x80 >> i) else paper_rgb
                    pixel_offset = offset + i * SNA_BYTES_PER_PIXEL
                    pixels[pixel_offset : pixel_offset + SNA_BYTES_PER_PIXEL] = bytes(
                        rgb
                    )
    assert len(pixels) == SNA_PIXEL_BUFFER_SIZE, "pixel buffer changed size"
    return bytes(pixels)


def decode_sna_data(sna_data):
    """Given binary SNA data as input, decodes its screen and produces
    a 256 x 192 RGB PIL Image as output.

    """
    return Image.frombytes(
        "RGB", (SNA_SCREEN_WIDTH, SNA_SCREEN_HEIGHT), decode_sna_pixels(sna_data)
    )


def gamma_pnginfo():
    pnginfo = PngInfo()
    pnginfo.add(b"gAMA", int(0.45455e5).to_bytes(4, "big"))
    return pnginfo


def save_png(image, output_file_name):
    if os.path.lexists(output_file_name):
        os.remove(output_file_name)
        print(
            "removed previous %(output_file_name)s"
            % dict(output_file_name=output_file_name)
        )
    image.save(output_file_name, pnginfo=gamma_pnginfo())
    print("saved %(output_file_name)s" % dict(output_file_name=output_file_name))


def smoke_test_venetian_blind_row():
    assert [venetian_blind_row(y) for y in (0, 1, 7, 8, 63, 64, 191)] == [
        0,
        8,
        56,
        1,
        63,
        64,
        191,
    ]
    assert sorted(venetian_blind_row(y) for y in range(SNA_SCREEN_HEIGHT)) == list(
        range(SNA_SCREEN_HEIGHT)
    ), "row mapping must be a permutation of the screen lines"


def smoke_test_cell_attributes():
    assert decode_cell_attributes(0b01000111) == CellAttributes(
        ink=7, paper=0, bright=True, flash=False
    )
    assert decode_cell_attributes(0b10111000) == CellAttributes(
        ink=0, paper=7, bright=False, flash=True
    )
    assert color_index_to_rgb(7, True) == (255, 255, 255)
    assert color_index_to_rgb(7, False) == (223, 223, 223)
    assert color_index_to_rgb(0, True) == color_index_to_rgb(0, False) == (0, 0, 0)
    assert [color_index_to_rgb(i, True) for i in (1, 2, 4)] == [
        (0, 0, 255),
        (255, 0, 0),
        (0, 255, 0),
    ]


def smoke_test_everything():
    smoke_test_venetian_blind_row()
    smoke_test_cell_attributes()


def sna_main():
    _, sna_data_file_name = (
        sys.argv
    )  # usage: python sna.py SNA_FILE  # generates SNA_FILE_sna.png in the current directory
    output_file_name = os.path.basename(sna_data_file_name + "_sna.png")
    with open(sna_data_file_name, "rb") as f:
        sna_data = f.read()
    decoded_image = decode_sna_data(sna_data)
    save_png(decoded_image, output_file_name)


smoke_test_everything()  # do this at import time so a broken module
# gets noticed as soon as possible

if __name__ == "__main__":
    sna_main()
