"""
Image Slicing Module

Cuts one full-page raster into per-section crops. Every crop is read from the
same raster, so all of them show the page in the same state. Section
rectangles are floored to whole pixels and clamped to the raster bounds;
sections left without area are skipped. The raster is deleted afterwards
whether or not every section produced a crop.
"""

import math
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple

from PIL import Image

from .detector import Section

CROP_FILENAME = "section-{index}.png"


@dataclass(frozen=True)
class CropBox:
    """Integer crop rectangle in raster pixels."""
    left: int
    top: int
    width: int
    height: int

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """Pillow crop box (left, upper, right, lower)."""
        return (self.left, self.top, self.left + self.width, self.top + self.height)

    def to_dict(self) -> dict:
        return {'left': self.left, 'top': self.top, 'width': self.width, 'height': self.height}


@dataclass
class Crop:
    index: int
    path: Path
    box: CropBox
    section: Section


@dataclass
class SkippedSection:
    position: int
    section: Section
    box: CropBox


@dataclass
class SliceResult:
    """Crops produced from one raster and the sections that had to be skipped."""
    crops: List[Crop] = field(default_factory=list)
    skipped: List[SkippedSection] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.crops)


def clamp_section(section: Section, raster_width: int, raster_height: int) -> CropBox:
    """
    Resolve a section to whole pixels that lie inside the raster.

    Args:
        section: Section in document coordinates
        raster_width: Width of the full-page raster
        raster_height: Height of the full-page raster

    Returns:
        CropBox; check ``is_degenerate`` before cropping
    """
    left = max(math.floor(section.left), 0)
    top = max(math.floor(section.top), 0)
    width = math.floor(section.width)
    height = math.floor(section.height)

    if left + width > raster_width:
        width = raster_width - left
    if top + height > raster_height:
        height = raster_height - top

    return CropBox(left=left, top=top, width=width, height=height)


def remove_raster(raster_path: Path) -> bool:
    """Delete the transient raster. A failure is reported but never raised."""
    try:
        raster_path.unlink()
        return True
    except OSError as e:
        print(f"    > Warning: could not delete raster {raster_path}: {e}", file=sys.stderr)
        return False


def slice_raster(raster_path: Path, sections: Sequence[Section], output_dir: Path) -> SliceResult:
    """
    Crop every section out of the full-page raster.

    Crops are saved as ``section-1.png``, ``section-2.png``, ... numbered by
    the crops actually produced, so skipped sections leave no gaps.

    Args:
        raster_path: Path of the full-page screenshot
        sections: Sections sorted by top offset
        output_dir: Directory where the crops are written

    Returns:
        SliceResult with the produced crops and the skipped sections
    """
    result = SliceResult()
    try:
        with Image.open(raster_path) as raster:
            raster_width, raster_height = raster.size
            print(f"    > Slicing {len(sections)} sections from {raster_width}x{raster_height}px raster...")

            for position, section in enumerate(sections, start=1):
                crop_box = clamp_section(section, raster_width, raster_height)
                if crop_box.is_degenerate:
                    print(f"    > Skipping invalid section {position}: {crop_box.to_dict()}", file=sys.stderr)
                    result.skipped.append(SkippedSection(position=position, section=section, box=crop_box))
                    continue

                index = result.count + 1
                crop_path = output_dir / CROP_FILENAME.format(index=index)
                raster.crop(crop_box.box).save(crop_path)
                result.crops.append(Crop(index=index, path=crop_path, box=crop_box, section=section))
                print(f"    > Saved {crop_path.name} {crop_box.to_dict()}")
    finally:
        remove_raster(raster_path)

    return result
