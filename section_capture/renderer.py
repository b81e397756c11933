"""
Page rendering on top of the Playwright async API.

Browser and page creation, multi-stage page loading, the bounded scroll loop
that triggers lazy-loaded content, and the single full-page capture.
"""

import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError

from .errors import NavigationFailure

SCROLL_HEIGHT_SCRIPT = "() => document.body ? document.body.scrollHeight : 0"
SCROLL_BY_SCRIPT = "(distance) => window.scrollBy(0, distance)"
READY_STATE_SCRIPT = "document.readyState === 'complete'"


@dataclass
class ScrollResult:
    """Outcome of the scroll loop."""
    distance: int
    iterations: int
    final_height: int
    truncated: bool = False


def normalize_url(url: str) -> str:
    """
    Validate a user supplied URL and add a scheme when it is missing.

    Raises:
        NavigationFailure: If the URL is empty or has no host
    """
    url = (url or "").strip()
    if not url:
        raise NavigationFailure("URL is required")

    if not url.startswith(('http://', 'https://')):
        url = 'https://' + url

    if not urlparse(url).hostname:
        raise NavigationFailure(f"Invalid URL: {url}")
    return url


async def create_browser(playwright, options: Dict[str, Any], headless: bool = True):
    """Launch Chromium with the configured flags."""
    return await playwright.chromium.launch(
        headless=headless,
        args=options.get('browser_args', [])
    )


async def create_page(browser, options: Dict[str, Any], width: int, height: int):
    """Create a page in its own context with a fixed viewport and user agent."""
    context = await browser.new_context(
        viewport={'width': width, 'height': height},
        user_agent=options.get('user_agent'),
        extra_http_headers=options.get('extra_http_headers') or {}
    )
    return await context.new_page()


async def load_page(page, url: str, timeout_ms: int = 90000, idle_timeout_ms: int = 30000):
    """
    Load page using multi-stage strategy for better compatibility.

    Args:
        page: Playwright page object
        url: The URL to navigate to
        timeout_ms: Deadline for the initial navigation
        idle_timeout_ms: Deadline for the network to settle

    Raises:
        NavigationFailure: If the page cannot be reached within the deadline
    """
    # Stage 1: Initial load
    print("    > Loading page structure...")
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightError as e:
        raise NavigationFailure(f"Could not load {url}: {e}") from e

    # Stage 2: Wait for network to settle
    print("    > Waiting for network activity to settle...")
    try:
        await page.wait_for_load_state("networkidle", timeout=idle_timeout_ms)
    except PlaywrightError:
        try:
            await page.wait_for_load_state("load", timeout=idle_timeout_ms)
        except PlaywrightError as e:
            raise NavigationFailure(f"Timed out waiting for {url} to load: {e}") from e

    # Stage 3: Wait for document ready
    try:
        await page.wait_for_function(READY_STATE_SCRIPT, timeout=idle_timeout_ms // 2)
    except PlaywrightError:
        print("    > Warning: document never reported readyState=complete", file=sys.stderr)

    print("    > Page loading complete")


async def scroll_to_bottom(page, step_px: int = 200, interval_ms: int = 200,
                           max_distance_px: int = 50000, max_duration_ms: int = 60000) -> ScrollResult:
    """
    Scroll down in fixed steps until the accumulated distance reaches the page height.

    The document height is re-read on every step, so content appended while
    scrolling extends the loop. The loop also stops once ``max_distance_px``
    or ``max_duration_ms`` is reached, which bounds infinite-scroll pages.

    Args:
        page: Playwright page object
        step_px: Pixels scrolled per step
        interval_ms: Pause between steps
        max_distance_px: Upper bound on the accumulated scroll distance
        max_duration_ms: Upper bound on the time spent scrolling

    Returns:
        ScrollResult describing how far the loop went and whether it was cut short
    """
    print("  > Scrolling page to load all content...")
    started = time.monotonic()
    result = ScrollResult(distance=0, iterations=0, final_height=0)

    while True:
        result.final_height = await page.evaluate(SCROLL_HEIGHT_SCRIPT)
        await page.evaluate(SCROLL_BY_SCRIPT, step_px)
        result.distance += step_px
        result.iterations += 1

        if result.distance >= result.final_height:
            break

        elapsed_ms = (time.monotonic() - started) * 1000
        if result.distance >= max_distance_px or elapsed_ms >= max_duration_ms:
            result.truncated = True
            print(f"    > Warning: stopped scrolling after {result.distance}px in {elapsed_ms:.0f}ms, "
                  f"page height is still {result.final_height}px", file=sys.stderr)
            break

        await page.wait_for_timeout(interval_ms)

    print(f"    > Page scrolled: {result.distance}px in {result.iterations} steps")
    return result


async def settle(page, delay_ms: int):
    """Wait a fixed delay for lazy-loaded images that are not tied to scroll events."""
    await page.wait_for_timeout(delay_ms)


async def capture_full_page(page, raster_path: Path, timeout_ms: int = 60000) -> Path:
    """
    Take one full-page screenshot.

    Raises:
        NavigationFailure: If the capture fails or exceeds its deadline
    """
    try:
        await page.screenshot(path=str(raster_path), full_page=True, timeout=timeout_ms)
    except PlaywrightError as e:
        raise NavigationFailure(f"Full-page capture failed: {e}") from e
    return raster_path
