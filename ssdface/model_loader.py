"""
Model artifact resolution for the face detection system.

Responsibility:
    Turn the configured prototxt/weights locations into absolute paths
    of files that exist on disk, fetching and caching them from an asset
    server when they are not bundled locally.

Non-goals:
    - No network loading or inference (see ssdface.engine).
    - No retry loop: one blocking request per missing artifact, success
      or AssetFetchError.

Resolution order per artifact:
    1. The configured path, if the file exists.
    2. A previously cached copy in assets.cache_dir.
    3. GET <assets.base_url>/<filename>, written to assets.cache_dir.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import requests

from ssdface.config import AssetConfig, ModelConfig, get_project_root
from ssdface.errors import AssetFetchError, LoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelPaths:
    """Absolute, existing paths of the two model artifacts."""

    prototxt_path: str
    weights_path: str


def resolve_model_paths(model: ModelConfig, assets: AssetConfig) -> ModelPaths:
    """Resolve both model artifacts to local files.

    Args:
        model: ModelConfig with the configured artifact paths.
        assets: AssetConfig controlling remote retrieval and caching.

    Returns:
        ModelPaths pointing at files that exist.

    Raises:
        LoadError: If an artifact is missing and no asset server is configured.
        AssetFetchError: If fetching an artifact from the asset server fails.
    """
    return ModelPaths(
        prototxt_path=str(resolve_artifact(model.prototxt_path, assets)),
        weights_path=str(resolve_artifact(model.weights_path, assets)),
    )


def resolve_artifact(configured_path: str, assets: AssetConfig) -> Path:
    """Resolve one artifact, fetching it into the cache if needed."""
    path = _anchor(Path(configured_path))
    if path.is_file():
        return path

    cached = _anchor(Path(assets.cache_dir)) / path.name
    if cached.is_file():
        logger.info("Using cached model artifact: %s", cached)
        return cached

    if not assets.base_url:
        raise LoadError(
            f"Model artifact not found.\n"
            f"  Expected: {path}\n"
            f"  Place the file there or set 'assets.base_url' to fetch it.",
            path=str(path),
        )

    url = f"{assets.base_url.rstrip('/')}/{path.name}"
    fetch_asset(url, cached, timeout=assets.timeout)
    return cached


def fetch_asset(url: str, target: Path, timeout: float = 30.0) -> Path:
    """Download a file and write it to target atomically.

    The bytes land in a temporary file next to target and are renamed
    into place, so a failed download never leaves a truncated artifact
    that a later run would mistake for a cached copy.

    Raises:
        AssetFetchError: On connection failure or a non-2xx response.
    """
    logger.info("Fetching model artifact: %s -> %s", url, target)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise AssetFetchError(
            f"Failed to fetch model artifact from {url}: {e}",
            url=url,
            path=str(target),
        ) from e

    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(response.content)
        os.replace(tmp_name, target)
    except OSError:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise

    logger.info("Cached %d bytes at %s", len(response.content), target)
    return target


def _anchor(path: Path) -> Path:
    """Resolve relative paths against the project root."""
    if path.is_absolute():
        return path
    return get_project_root() / path
