"""Utility functions for loading generation manifests.

A manifest is the emitter output serialised as JSON: an object mapping
relative file paths to generated text. It can be read from a local file or
fetched from a URL (for example a CI artifact).
"""

import json
from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlparse

import requests

from .logging_config import get_logger

logger = get_logger(__name__)


class ManifestError(Exception):
    """Raised when a manifest cannot be loaded or has the wrong shape."""

    pass


def load_json_from_file(file_path: str | Path) -> tuple[str, Any]:
    """Load JSON data from a local file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        Tuple of (source description, parsed JSON data).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ManifestError: If file cannot be read or JSON is invalid.
    """
    file_path = Path(file_path)
    logger.debug(f"Loading JSON from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Loaded JSON from {file_path}")
        return str(file_path), data
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in file {file_path}: {e}")
        raise ManifestError(f"Invalid JSON in file {file_path}: {e}") from e
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}")
        raise ManifestError(f"Error reading file {file_path}: {e}") from e


def load_json_from_url(url: str, timeout: int = 30) -> tuple[str, Any]:
    """Load JSON data from a URL.

    Args:
        url: URL to fetch JSON from.
        timeout: Request timeout in seconds.

    Returns:
        Tuple of (source description, parsed JSON data).

    Raises:
        ManifestError: If URL is invalid, request fails, or response isn't valid JSON.
    """
    logger.debug(f"Loading JSON from URL: {url}")

    parsed_url = urlparse(url)
    if not all([parsed_url.scheme, parsed_url.netloc]):
        logger.error(f"Invalid URL format: {url}")
        raise ManifestError(f"Invalid URL: {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
        logger.info(f"Loaded JSON from {url}")
        return url, data

    except requests.exceptions.Timeout as e:
        logger.error(f"Request timeout for URL: {url}")
        raise ManifestError(f"Request timeout for URL: {url}") from e
    except requests.exceptions.ConnectionError as e:
        logger.error(f"Connection error for URL {url}: {e}")
        raise ManifestError(f"Connection error for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        logger.error(f"HTTP error {e.response.status_code} for URL: {url}")
        raise ManifestError(
            f"HTTP error {e.response.status_code} for URL: {url}"
        ) from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Request error for URL {url}: {e}")
        raise ManifestError(f"Request error for URL {url}: {e}") from e
    except ValueError as e:
        logger.error(f"Invalid JSON response from URL {url}: {e}")
        raise ManifestError(f"Invalid JSON response from URL {url}: {e}") from e


def load_json(
    file_path: str | Path | None = None,
    url: str | None = None,
    timeout: int = 30,
) -> tuple[str, Any]:
    """Load JSON data from either a file or URL.

    Raises:
        ManifestError: If neither or both sources are given, or loading fails.
        FileNotFoundError: If file doesn't exist.
    """
    if not file_path and not url:
        raise ManifestError("Either file_path or url must be provided")

    if file_path and url:
        raise ManifestError("Cannot specify both file_path and url")

    if file_path:
        return load_json_from_file(file_path)
    return load_json_from_url(url, timeout)


def load_manifest(
    file_path: str | Path | None = None,
    url: str | None = None,
    timeout: int = 30,
) -> tuple[str, Dict[str, str]]:
    """Load a generation manifest (relative path -> generated text).

    Returns:
        Tuple of (source description, manifest mapping).

    Raises:
        ManifestError: If the document is not an object of strings.
    """
    source, data = load_json(file_path=file_path, url=url, timeout=timeout)

    # Accept both a bare mapping and {"files": {...}}
    if isinstance(data, dict) and isinstance(data.get("files"), dict):
        data = data["files"]

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object: {source}")

    bad = [key for key, value in data.items() if not isinstance(value, str)]
    if bad:
        raise ManifestError(
            f"Manifest entries must map paths to text; invalid: {', '.join(sorted(bad))}"
        )

    logger.info("Manifest %s lists %d file(s)", source, len(data))
    return source, data
