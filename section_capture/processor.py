import argparse
import asyncio
import datetime
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml
from playwright.async_api import async_playwright

from config import Config
from .detector import DetectionThresholds, Section, measure_sections
from .errors import AnalysisCancelled
from .renderer import (
    capture_full_page, create_browser, create_page, load_page,
    normalize_url, scroll_to_bottom, settle
)
from .slicer import SliceResult, slice_raster
from .utils import (
    build_references, create_output_path,
    create_standard_error_response, create_standard_success_response
)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
RASTER_FILENAME = "master.png"
MANIFEST_FILENAME = "sections.json"


def _check_cancelled(cancel_event: Optional[asyncio.Event], stage: str):
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelled(f"Analysis cancelled before {stage}")


class SectionScreenshotProcessor:
    """
    Renders a page, detects its sections and saves one image per section.
    - Uses Playwright for loading, scrolling, DOM geometry and the full-page capture.
    - Uses Pillow to cut the single capture into per-section crops.
    """
    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH, settings=Config):
        """Initialize the processor with browser options and application settings."""
        self.options = self._load_config(config_path)
        self.settings = settings
        self.thresholds = DetectionThresholds(**settings.get_detection_thresholds())

    def _load_config(self, config_path: Path) -> dict:
        """Load configuration from YAML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found at {config_path}")
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    async def run_pipeline(self, page, url: str, output_path: Path,
                           cancel_event: Optional[asyncio.Event] = None) -> Tuple[List[Section], SliceResult]:
        """
        Run the sequential stages of one analysis on an open page.

        navigate -> scroll -> settle -> measure -> capture -> slice

        Args:
            page: Playwright page object with the capture viewport
            url: The URL to analyze
            output_path: Run directory for the raster and the crops
            cancel_event: Optional event checked between stages

        Returns:
            Tuple of (detected sections, slicing result)
        """
        print("  > Phase 1: Loading page...")
        await load_page(page, url, self.settings.NAVIGATION_TIMEOUT_MS, self.settings.NETWORK_IDLE_TIMEOUT_MS)

        _check_cancelled(cancel_event, "scrolling")
        await scroll_to_bottom(page, **self.settings.get_scroll_limits())
        await settle(page, self.settings.SCROLL_SETTLE_MS)

        _check_cancelled(cancel_event, "section detection")
        print("  > Phase 2: Detecting sections...")
        sections = await measure_sections(
            page,
            capture_width=self.settings.VIEWPORT_WIDTH,
            thresholds=self.thresholds,
            landmark_selectors=self.options.get('landmark_selectors', ['main']),
            max_depth=self.options.get('snapshot_max_depth', 40)
        )
        print(f"    > Analysis complete. Found {len(sections)} sections.")

        if not sections:
            print("    > WARNING: No sections found after analysis.", file=sys.stderr)
            return sections, SliceResult()

        _check_cancelled(cancel_event, "capture")
        print("  > Phase 3: Capturing full page...")
        raster_path = await capture_full_page(page, output_path / RASTER_FILENAME, self.settings.CAPTURE_TIMEOUT_MS)

        print("  > Phase 4: Slicing sections...")
        slice_result = slice_raster(raster_path, sections, output_path)
        if slice_result.skipped:
            print(f"    > Skipped {len(slice_result.skipped)} sections outside the captured page")
        return sections, slice_result

    def _write_manifest(self, url: str, output_path: Path, sections: List[Section], slice_result: SliceResult):
        """Save the detected geometry and the produced crops next to the images."""
        manifest = {
            "url": url,
            "timestamp": datetime.datetime.now().isoformat(),
            "viewport": {"width": self.settings.VIEWPORT_WIDTH, "height": self.settings.VIEWPORT_HEIGHT},
            "sections": [section.to_dict() for section in sections],
            "crops": [
                {"index": crop.index, "file": crop.path.name, "box": crop.box.to_dict()}
                for crop in slice_result.crops
            ],
            "skipped": len(slice_result.skipped)
        }
        with open(output_path / MANIFEST_FILENAME, 'w', encoding='utf-8') as f:
            json.dump(manifest, f, indent=2, ensure_ascii=False)

    async def analyze(self, url: str, base_output_dir: Optional[Path] = None,
                      cancel_event: Optional[asyncio.Event] = None) -> List[str]:
        """Analyze one URL and return its ordered section image references."""
        references, _ = await self.run_analysis(url, base_output_dir, cancel_event)
        return references

    async def run_analysis(self, url: str, base_output_dir: Optional[Path] = None,
                           cancel_event: Optional[asyncio.Event] = None) -> Tuple[List[str], Path]:
        """
        Analyze one URL in its own browser.

        Args:
            url: The URL to analyze
            base_output_dir: Directory where the run folder is created
            cancel_event: Optional event checked between stages

        Returns:
            Tuple of (ordered section image references, run directory)

        Raises:
            NavigationFailure: If the page cannot be loaded or captured
            AnalysisCancelled: If ``cancel_event`` was set during the run
        """
        url = normalize_url(url)
        print(f"\n--- Processing {url} ---")

        base_output_dir = base_output_dir or self.settings.get_screenshot_output_dir()
        output_path = create_output_path(url, base_output_dir)

        async with async_playwright() as p:
            print("  > Launching browser...")
            browser = await create_browser(p, self.options, headless=self.settings.HEADLESS)
            try:
                page = await create_page(browser, self.options,
                                         self.settings.VIEWPORT_WIDTH, self.settings.VIEWPORT_HEIGHT)
                sections, slice_result = await self.run_pipeline(page, url, output_path, cancel_event)
            finally:
                await browser.close()
                print("  > Browser closed.")

        if self.options.get('write_manifest', True):
            self._write_manifest(url, output_path, sections, slice_result)

        references = build_references(
            self.settings.SCREENSHOT_URL_PREFIX,
            output_path.name,
            [crop.path.name for crop in slice_result.crops]
        )
        print(f"--- Successfully processed {url}: {len(references)} section images ---")
        print(f"   > Output saved in: {output_path}")
        return references, output_path

    async def process_url(self, url: str, base_output_dir: Optional[Path] = None,
                          cancel_event: Optional[asyncio.Event] = None) -> Dict[str, Any]:
        """
        Analyze a URL and report the outcome as a response dictionary.

        Returns:
            ``{"success": True, "url", "screenshots", "output_directory"}`` or
            ``{"success": False, "url", "error"}``
        """
        if not url or not url.strip():
            return create_standard_error_response("URL is required")

        try:
            screenshots, output_path = await self.run_analysis(url, base_output_dir, cancel_event)
        except Exception as e:
            print(f"--- FAILED to process {url}: {e} ---", file=sys.stderr)
            return create_standard_error_response(f"Failed to analyze the URL. {e}", url=url)

        return create_standard_success_response(
            {"screenshots": screenshots},
            url=url,
            output_directory=str(output_path)
        )

    async def process_urls(self, urls: Sequence[str], base_output_dir: Optional[Path] = None,
                           max_concurrency: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Analyze several URLs concurrently, each in its own browser and run directory.

        Returns:
            One response dictionary per URL, in input order
        """
        semaphore = asyncio.Semaphore(max(1, max_concurrency or self.settings.MAX_CONCURRENT_RUNS))

        async def _process_one(url: str) -> Dict[str, Any]:
            async with semaphore:
                return await self.process_url(url, base_output_dir)

        return await asyncio.gather(*[_process_one(url) for url in urls])


def print_results(results: List[Dict[str, Any]]) -> None:
    """Print a short summary of each run."""
    for result in results:
        if result["success"]:
            print(f"\n{result['url']}: {len(result['screenshots'])} section images in {result['output_directory']}")
            for reference in result["screenshots"]:
                print(f"  - {reference}")
        else:
            print(f"\n{result.get('url', '?')}: {result['error']}")


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the command line.

    In production, import and use the SectionScreenshotProcessor class directly.
    """
    parser = argparse.ArgumentParser(description='Split web pages into per-section screenshots')
    parser.add_argument('urls', nargs='+', help='URL(s) to process')
    parser.add_argument('--concurrency', type=int, default=Config.MAX_CONCURRENT_RUNS,
                        help='Number of pages analyzed at the same time')
    parser.add_argument('--output-dir', type=Path, default=None,
                        help='Base directory for run folders')
    parser.add_argument('--config', type=Path, default=DEFAULT_CONFIG_PATH,
                        help='Browser options YAML file')
    args = parser.parse_args(argv)

    processor = SectionScreenshotProcessor(args.config)
    results = await processor.process_urls(args.urls, args.output_dir, args.concurrency)
    print_results(results)
    return 0 if all(result["success"] for result in results) else 1


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
