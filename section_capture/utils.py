"""
Shared utilities for section capture runs.
Output namespaces, public references and standard response dictionaries.
"""

import datetime
from pathlib import Path
from typing import Dict, Any, List
from urllib.parse import urlparse


def sanitize_host(url: str) -> str:
    """
    Turn the URL host into a filesystem-safe name.

    Args:
        url: Absolute URL being analyzed

    Returns:
        Host without a leading ``www.``, with every non-alphanumeric character replaced by ``_``
    """
    host = urlparse(url).hostname or "site"
    if host.startswith("www."):
        host = host[4:]
    return "".join(c if c.isalnum() else "_" for c in host)


def create_output_path(url: str, base_output_dir: Path) -> Path:
    """
    Create the output directory for one run.

    The namespace is derived from the target host and a microsecond timestamp.
    If the directory already exists a numeric suffix is appended, so repeated
    or concurrent runs never share a directory.

    Args:
        url: Absolute URL being analyzed
        base_output_dir: Directory where per-run folders are created

    Returns:
        Path of the newly created run directory
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    namespace = f"{sanitize_host(url)}_{timestamp}"
    base_output_dir.mkdir(parents=True, exist_ok=True)

    output_path = base_output_dir / namespace
    suffix = 1
    while True:
        try:
            output_path.mkdir()
            return output_path
        except FileExistsError:
            suffix += 1
            output_path = base_output_dir / f"{namespace}_{suffix}"


def build_references(url_prefix: str, namespace: str, file_names: List[str]) -> List[str]:
    """Map produced crop file names to public references inside the run namespace."""
    prefix = url_prefix.rstrip("/")
    return [f"{prefix}/{namespace}/{name}" for name in file_names]


def create_standard_error_response(error_msg: str, **additional_fields) -> Dict[str, Any]:
    """
    Build the response for a failed run: ``{"success": False, "error": ...}``.

    Only one message describes the failure; per-section detail is never included.

    Args:
        error_msg: Single cause shown to the caller, e.g. "Failed to analyze the URL. ..."
        **additional_fields: Extra keys such as ``url``
    """
    return {"success": False, "error": error_msg, **additional_fields}


def create_standard_success_response(data: Dict[str, Any], **additional_fields) -> Dict[str, Any]:
    """
    Build the response for a finished run.

    Args:
        data: Run payload, normally ``{"screenshots": [...]}`` with the ordered section references
        **additional_fields: Extra keys such as ``url`` and ``output_directory``

    Returns:
        ``{"success": True, "screenshots": [...], "url": ..., "output_directory": ...}``
    """
    return {"success": True, **data, **additional_fields}
