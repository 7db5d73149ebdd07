#!/usr/bin/env python3

"""Icon-sized thumbnail of the screen stored in an SNA snapshot.

The screen is shrunk to fit a square icon and centred on a black
square, so the 4:3 shape is kept with bars above and below. Files
that cannot be read or are not 48K snapshots produce no thumbnail at
all (None), which lets the caller fall back to a generic icon.

"""

from PIL import Image

import os
import sys

from sna import SnaSizeMismatch, decode_sna_data, save_png
from sna_preview import fit_size

SNA_THUMBNAIL_DEFAULT_SIZE = 128
THUMBNAIL_BACKGROUND_RGB = (0, 0, 0)


def thumbnail_sna_data(sna_data, maximum_size=SNA_THUMBNAIL_DEFAULT_SIZE):
    assert maximum_size > 0, "thumbnail size must be positive"
    decoded_image = decode_sna_data(sna_data)
    scaled_image = decoded_image.resize(
        fit_size(decoded_image.size, (maximum_size, maximum_size)), Image.LANCZOS
    )
    thumbnail_image = Image.new(
        "RGB", (maximum_size, maximum_size), THUMBNAIL_BACKGROUND_RGB
    )
    thumbnail_image.paste(
        scaled_image,
        (
            (maximum_size - scaled_image.width) // 2,
            (maximum_size - scaled_image.height) // 2,
        ),
    )
    return thumbnail_image


def thumbnail_sna_file(sna_path, maximum_size=SNA_THUMBNAIL_DEFAULT_SIZE):
    """Given the path of an SNA file, returns a square PIL Image
    maximum_size pixels on a side, or None if the file could not be
    read or decoded.

    """
    try:
        with open(sna_path, "rb") as f:
            sna_data = f.read()
        return thumbnail_sna_data(sna_data, maximum_size)
    except (OSError, SnaSizeMismatch) as e:
        print(
            "no thumbnail for %(sna_path)s: %(e)s" % dict(sna_path=sna_path, e=e),
            file=sys.stderr,
        )
        return None


def sna_thumbnail_main():
    try:
        _, sna_data_file_name = sys.argv
        maximum_size = SNA_THUMBNAIL_DEFAULT_SIZE
    except ValueError:
        (  # usage: python sna_thumbnail.py SNA_FILE [ SIZE ]  # generates SNA_FILE_thumbnail.png in the current directory
            _,
            sna_data_file_name,
            maximum_size,
        ) = sys.argv
        maximum_size = int(maximum_size)
    thumbnail_image = thumbnail_sna_file(sna_data_file_name, maximum_size)
    if thumbnail_image is None:
        sys.exit(1)
    output_file_name = os.path.basename(sna_data_file_name + "_thumbnail.png")
    save_png(thumbnail_image, output_file_name)


if __name__ == "__main__":
    sna_thumbnail_main()
