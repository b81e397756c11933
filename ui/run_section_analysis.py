#!/usr/bin/env python3
"""
Standalone script to split a page into section screenshots and return JSON output.
Used by the web server to answer analyze requests.
"""

import sys
import json
import asyncio
from contextlib import redirect_stdout
from pathlib import Path

# Add parent directory to path to import section_capture module
sys.path.append(str(Path(__file__).parent.parent))

from section_capture.processor import SectionScreenshotProcessor


async def main() -> int:
    if len(sys.argv) != 2:
        print(json.dumps({"error": "Usage: python run_section_analysis.py <url>"}))
        return 1

    url = sys.argv[1]

    try:
        # Progress output must not mix with the JSON on stdout
        with redirect_stdout(sys.stderr):
            processor = SectionScreenshotProcessor()
            result = await processor.process_url(url)
    except Exception as e:
        result = {"success": False, "error": f"Failed to analyze the URL. {str(e)}"}

    if result["success"]:
        print(json.dumps({"screenshots": result["screenshots"]}))
        return 0

    print(json.dumps({"error": result["error"]}))
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
