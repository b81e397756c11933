"""
Configuration management for the section capture application.
Centralizes all configuration values and eliminates hardcoded constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration class."""

    # Viewport Configuration
    VIEWPORT_WIDTH = int(os.getenv('VIEWPORT_WIDTH', 1280))
    VIEWPORT_HEIGHT = int(os.getenv('VIEWPORT_HEIGHT', 800))

    # Scroll Configuration
    SCROLL_STEP_PX = int(os.getenv('SCROLL_STEP_PX', 200))
    SCROLL_INTERVAL_MS = int(os.getenv('SCROLL_INTERVAL_MS', 200))
    SCROLL_SETTLE_MS = int(os.getenv('SCROLL_SETTLE_MS', 1000))  # lazy-loaded images
    MAX_SCROLL_DISTANCE_PX = int(os.getenv('MAX_SCROLL_DISTANCE_PX', 50000))
    MAX_SCROLL_DURATION_MS = int(os.getenv('MAX_SCROLL_DURATION_MS', 60000))

    # Browser Configuration
    NAVIGATION_TIMEOUT_MS = int(os.getenv('NAVIGATION_TIMEOUT_MS', 90000))
    NETWORK_IDLE_TIMEOUT_MS = int(os.getenv('NETWORK_IDLE_TIMEOUT_MS', 30000))
    CAPTURE_TIMEOUT_MS = int(os.getenv('CAPTURE_TIMEOUT_MS', 60000))
    HEADLESS = os.getenv('HEADLESS', 'true').lower() == 'true'

    # Detection Configuration
    MIN_SECTION_HEIGHT = int(os.getenv('MIN_SECTION_HEIGHT', 50))
    MIN_SECTION_WIDTH = int(os.getenv('MIN_SECTION_WIDTH', 100))
    MEGA_CONTAINER_RATIO = float(os.getenv('MEGA_CONTAINER_RATIO', 0.8))

    # Output Configuration
    SCREENSHOT_OUTPUT_DIR = Path(os.getenv('SCREENSHOT_OUTPUT_DIR', 'public/screenshots'))
    SCREENSHOT_URL_PREFIX = os.getenv('SCREENSHOT_URL_PREFIX', '/screenshots')
    MAX_CONCURRENT_RUNS = int(os.getenv('MAX_CONCURRENT_RUNS', 2))

    @classmethod
    def get_screenshot_output_dir(cls) -> Path:
        """Get the screenshot output directory path."""
        return cls.SCREENSHOT_OUTPUT_DIR

    @classmethod
    def get_scroll_limits(cls) -> dict:
        """Get the keyword arguments for the bounded scroll loop."""
        return {
            'step_px': cls.SCROLL_STEP_PX,
            'interval_ms': cls.SCROLL_INTERVAL_MS,
            'max_distance_px': cls.MAX_SCROLL_DISTANCE_PX,
            'max_duration_ms': cls.MAX_SCROLL_DURATION_MS,
        }

    @classmethod
    def get_detection_thresholds(cls) -> dict:
        """Get the section size and mega-container thresholds."""
        return {
            'min_height': cls.MIN_SECTION_HEIGHT,
            'min_width': cls.MIN_SECTION_WIDTH,
            'mega_ratio': cls.MEGA_CONTAINER_RATIO,
        }

    @classmethod
    def validate_config(cls):
        """Validate configuration values."""
        errors = []

        if cls.VIEWPORT_WIDTH <= 0 or cls.VIEWPORT_HEIGHT <= 0:
            errors.append("Viewport dimensions must be positive")

        if cls.SCROLL_STEP_PX <= 0:
            errors.append("Scroll step must be positive")

        if cls.SCROLL_INTERVAL_MS < 0 or cls.SCROLL_SETTLE_MS < 0:
            errors.append("Scroll interval and settle delay cannot be negative")

        if cls.MAX_SCROLL_DISTANCE_PX <= 0 or cls.MAX_SCROLL_DURATION_MS <= 0:
            errors.append("Scroll limits must be positive")

        for name in ('NAVIGATION_TIMEOUT_MS', 'NETWORK_IDLE_TIMEOUT_MS', 'CAPTURE_TIMEOUT_MS'):
            if getattr(cls, name) <= 0:
                errors.append(f"{name} must be positive")

        if not 0 < cls.MEGA_CONTAINER_RATIO < 1:
            errors.append("Mega-container ratio must be between 0 and 1")

        if cls.MIN_SECTION_HEIGHT < 0 or cls.MIN_SECTION_WIDTH < 0:
            errors.append("Minimum section size cannot be negative")

        if cls.MAX_CONCURRENT_RUNS < 1:
            errors.append("At least one concurrent run must be allowed")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

        return True


# Create global config instance
config = Config()

# Validate configuration on import
if __name__ != '__main__':
    config.validate_config()
