"""
Error taxonomy for the face detection pipeline.

Responsibility:
    Define the exceptions raised by model loading and output decoding so
    callers can tell a broken model setup from a bad forward pass.

Non-goals:
    - No retry policy (belongs to the caller or the model loader's user).
    - Input-contract violations use the built-in TypeError / ValueError.

An empty detection result is NOT an error: it is an empty list.
"""

from typing import Optional


class FaceDetectionError(Exception):
    """Base class for all pipeline errors."""


class LoadError(FaceDetectionError):
    """Topology or weights artifact is missing, unreadable, or invalid.

    Fatal at initialization: a detector that failed to load must not be used.

    Attributes:
        path: The artifact path that could not be loaded, if known.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class AssetFetchError(LoadError):
    """A model artifact could not be retrieved from the asset server."""

    def __init__(self, message: str, url: str, path: Optional[str] = None) -> None:
        super().__init__(message, path=path)
        self.url = url


class ShapeError(FaceDetectionError):
    """The network produced output the decoder cannot interpret.

    Raised when the forward pass yields other than exactly one output
    tensor, or when the tensor's element count is not a multiple of 7.

    Attributes:
        count: The offending tensor count or element count.
    """

    def __init__(self, message: str, count: int) -> None:
        super().__init__(message)
        self.count = count
