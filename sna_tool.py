#!/usr/bin/env python3

from typing import Callable, NamedTuple, List, Dict

import os.path
import sys

from sna import (
    SNA_FILE_SIZE,
    SnaSizeMismatch,
    decode_cell_attributes,
    decode_sna_data,
    save_png,
    split_sna_regions,
)
from sna_preview import SNA_PREVIEW_DEFAULT_PANEL_SIZE, preview_sna_data
from sna_thumbnail import SNA_THUMBNAIL_DEFAULT_SIZE, thumbnail_sna_data

COLOR_NAMES = [
    "black",
    "blue",
    "red",
    "magenta",
    "green",
    "cyan",
    "yellow",
    "white",
]


class Logger(NamedTuple):
    append: Callable[[str], None]
    contents: Callable[[], List[str]]


def start_log() -> Logger:
    output = []

    def append(s: str):
        output.append(s)
        print(s)

    def contents() -> List[str]:
        return output

    return Logger(append=append, contents=contents)


class ScreenInfo(NamedTuple):
    sna_sz: int
    errors: List[str]
    bright_cells: int
    flash_cells: int
    ink_usage: Dict[int, int]
    paper_usage: Dict[int, int]


def make_screen_info(**kw) -> ScreenInfo:
    return ScreenInfo(**kw)


def analyze_sna(*, sna_data: bytes) -> ScreenInfo:
    ink_usage = {color_index: 0 for color_index in range(len(COLOR_NAMES))}
    paper_usage = dict(ink_usage)
    bright_cells = flash_cells = 0
    try:
        regions = split_sna_regions(sna_data)
    except SnaSizeMismatch as e:
        return make_screen_info(
            sna_sz=len(sna_data),
            errors=[str(e)],
            bright_cells=bright_cells,
            flash_cells=flash_cells,
            ink_usage=ink_usage,
            paper_usage=paper_usage,
        )
    for attribute_byte in regions.attributes:
        attributes = decode_cell_attributes(attribute_byte)
        ink_usage[attributes.ink] += 1
        paper_usage[attributes.paper] += 1
        bright_cells += attributes.bright
        flash_cells += attributes.flash
    return make_screen_info(
        sna_sz=len(sna_data),
        errors=[],
        bright_cells=bright_cells,
        flash_cells=flash_cells,
        ink_usage=ink_usage,
        paper_usage=paper_usage,
    )


def log_file_information(*, sna_path: str, screen_info: ScreenInfo, logger: Logger):
    logger.append(f"\n== File Information ==")
    logger.append(f"File name: {sna_path}")
    logger.append(f"File size: {screen_info.sna_sz} (expected {SNA_FILE_SIZE})")
    for error in screen_info.errors:
        logger.append(f"Error: {error}")


def log_attribute_summary(*, screen_info: ScreenInfo, logger: Logger):
    logger.append(f"\n== Attribute Summary ==")
    logger.append(f"Bright cells: {screen_info.bright_cells}")
    logger.append(f"Flash cells: {screen_info.flash_cells} (not rendered)")
    logger.append(f"{'colour':>8} {'ink':>5} {'paper':>5}")
    for color_index, color_name in enumerate(COLOR_NAMES):
        logger.append(
            f"{color_name:>8} {screen_info.ink_usage[color_index]:5}"
            f" {screen_info.paper_usage[color_index]:5}"
        )


def save_log(*, outdir, logger: Logger):
    log_filename = os.path.join(outdir, "_sna_output.txt")
    with open(log_filename, "w", encoding="utf-8") as f:
        print(f"writing {log_filename}")
        f.write("\n".join(logger.contents()))


def extract_everything(
    *, sna_path: str, sna_data: bytes, logger: Logger, parent_dir: str = "."
):
    outdir = os.path.join(
        parent_dir, os.path.splitext(os.path.basename(sna_path))[0] + " [SNA Screen]"
    )

    disambig = ""
    while os.path.exists(outdir + disambig):
        disambig = f" ({1 + int(disambig.strip(' ()') or 0)})"
    outdir += disambig

    print("\n== Extracting ==")
    print(f"mkdir {outdir}")
    os.mkdir(outdir)
    save_log(outdir=outdir, logger=logger)
    save_png(decode_sna_data(sna_data), os.path.join(outdir, "screen.png"))
    save_png(
        preview_sna_data(sna_data, SNA_PREVIEW_DEFAULT_PANEL_SIZE),
        os.path.join(outdir, "preview.png"),
    )
    save_png(
        thumbnail_sna_data(sna_data, SNA_THUMBNAIL_DEFAULT_SIZE),
        os.path.join(outdir, "thumbnail.png"),
    )
    return outdir


def sna_tool(*, sna_path: str, sna_data: bytes, parent_dir: str = "."):
    """Logs what is known about one SNA file and extracts its screen,
    preview and thumbnail into a new directory under parent_dir.
    Returns the directory, or None for files that are not 48K
    snapshots; those are logged and skipped.

    """
    logger = start_log()
    screen_info = analyze_sna(sna_data=sna_data)
    log_file_information(sna_path=sna_path, screen_info=screen_info, logger=logger)
    if screen_info.errors:
        print(f"\nSkipped {sna_path}.")
        return None
    log_attribute_summary(screen_info=screen_info, logger=logger)
    outdir = extract_everything(
        sna_path=sna_path, sna_data=sna_data, logger=logger, parent_dir=parent_dir
    )
    print(f"\nDone. {sna_path}")
    return outdir


def main():
    if len(sys.argv) < 2:
        print("Usage: python sna_tool.py <file.sna> [...]")
        sys.exit(1)
    for sna_path in sys.argv[1:]:
        with open(sna_path, "rb") as f:
            sna_data = f.read()
        sna_tool(sna_path=sna_path, sna_data=sna_data)


if __name__ == "__main__":
    main()
