"""
Section Capture Module

Splits a web page into its visually distinct sections and saves one image per
section, all cut from a single full-page screenshot.

Key Features:
- Bounded scrolling to trigger lazy-loaded content before measuring
- Section detection from live DOM geometry (wrapper drill-down, main landmark
  fallback, mega-container collapse)
- Bounds-safe slicing of the full-page capture with Pillow

Usage:
    from section_capture import SectionScreenshotProcessor

    processor = SectionScreenshotProcessor()
    screenshots = await processor.analyze(url)
"""

from .detector import Section, DetectionThresholds, detect_sections, measure_sections
from .errors import AnalysisError, NavigationFailure, AnalysisCancelled
from .processor import SectionScreenshotProcessor
from .slicer import CropBox, SliceResult, clamp_section, slice_raster

__all__ = [
    'SectionScreenshotProcessor', 'Section', 'DetectionThresholds', 'detect_sections',
    'measure_sections', 'CropBox', 'SliceResult', 'clamp_section', 'slice_raster',
    'AnalysisError', 'NavigationFailure', 'AnalysisCancelled'
]
