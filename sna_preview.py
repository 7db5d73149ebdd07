#!/usr/bin/env python3

"""Full-size preview of the screen stored in an SNA snapshot.

The decoded 256 x 192 screen is scaled up or down to the largest size
that fits the panel it is shown in, keeping its 4:3 shape. Scaling is
nearest-neighbour so the pixels stay square and sharp. A file that
cannot be read or is not a 48K snapshot gets a placeholder image with
the error message instead.

"""

from PIL import Image, ImageDraw, ImageFont

import os
import sys
import textwrap

from sna import (
    SNA_SCREEN_HEIGHT,
    SNA_SCREEN_WIDTH,
    SnaSizeMismatch,
    decode_sna_data,
    save_png,
)

SNA_PREVIEW_DEFAULT_PANEL_SIZE = (2 * SNA_SCREEN_WIDTH, 2 * SNA_SCREEN_HEIGHT)
ERROR_IMAGE_BACKGROUND_RGB = (0, 0, 0)
ERROR_IMAGE_TEXT_RGB = (255, 0, 0)
ERROR_IMAGE_MARGIN = 10
ERROR_IMAGE_WRAP_COLUMNS = 36
ERROR_IMAGE_LINE_SPACING = 2


def fit_size(size, bounds):
    """Given an image size (width, height) and bounding box size
    (width, height), returns the largest size with the same aspect
    ratio that fits inside the bounding box. Neither dimension is
    allowed to drop below one pixel.

    """
    width, height = size
    bounds_width, bounds_height = bounds
    assert width > 0 and height > 0, "image size must be positive"
    assert bounds_width > 0 and bounds_height > 0, "bounds must be positive"
    scale = min(bounds_width / width, bounds_height / height)
    return (max(1, round(width * scale)), max(1, round(height * scale)))


def render_error_image(message):
    """Returns a screen-sized black image with message drawn in red
    across the middle, wrapped to fit.

    """
    image = Image.new(
        "RGB", (SNA_SCREEN_WIDTH, SNA_SCREEN_HEIGHT), ERROR_IMAGE_BACKGROUND_RGB
    )
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()
    lines = textwrap.wrap(message, ERROR_IMAGE_WRAP_COLUMNS) or [""]
    line_boxes = [draw.textbbox((0, 0), line, font=font) for line in lines]
    line_height = max(bottom - top for _, top, _, bottom in line_boxes)
    text_height = len(lines) * line_height + (len(lines) - 1) * ERROR_IMAGE_LINE_SPACING
    y = max(ERROR_IMAGE_MARGIN, (SNA_SCREEN_HEIGHT - text_height) // 2)
    for line, (left, top, right, _) in zip(lines, line_boxes):
        x = max(ERROR_IMAGE_MARGIN, (SNA_SCREEN_WIDTH - (right - left)) // 2)
        draw.text((x - left, y - top), line, fill=ERROR_IMAGE_TEXT_RGB, font=font)
        y += line_height + ERROR_IMAGE_LINE_SPACING
    return image


def preview_sna_data(sna_data, panel_size=SNA_PREVIEW_DEFAULT_PANEL_SIZE):
    decoded_image = decode_sna_data(sna_data)
    return decoded_image.resize(
        fit_size(decoded_image.size, panel_size), Image.NEAREST
    )


def preview_sna_file(sna_path, panel_size=SNA_PREVIEW_DEFAULT_PANEL_SIZE):
    """Given the path of an SNA file and the (width, height) of the
    panel it will be shown in, returns a PIL Image to show there. This
    never raises for unreadable or malformed files; the error image is
    returned instead.

    """
    try:
        with open(sna_path, "rb") as f:
            sna_data = f.read()
        return preview_sna_data(sna_data, panel_size)
    except (OSError, SnaSizeMismatch) as e:
        return render_error_image("Error reading file: %(e)s" % dict(e=e))


def sna_preview_main():
    try:
        _, sna_data_file_name = sys.argv
        panel_size = SNA_PREVIEW_DEFAULT_PANEL_SIZE
    except ValueError:
        (  # usage: python sna_preview.py SNA_FILE [ WIDTH HEIGHT ]  # generates SNA_FILE_preview.png in the current directory
            _,
            sna_data_file_name,
            panel_width,
            panel_height,
        ) = sys.argv
        panel_size = (int(panel_width), int(panel_height))
    output_file_name = os.path.basename(sna_data_file_name + "_preview.png")
    save_png(preview_sna_file(sna_data_file_name, panel_size), output_file_name)


if __name__ == "__main__":
    sna_preview_main()
