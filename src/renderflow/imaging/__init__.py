"""Image loading layer for renderflow.

This package fetches and decodes image sources (URLs, data URLs, paths,
raw bytes) so that crop and mask operations can work from natural pixel
dimensions rather than on-screen sizes.

Key Components:
    - ImageLoader: async fetch + threaded decode
    - ImageLoaderProtocol: Protocol for dependency injection
    - SourceUnavailableError: the single failure classification

Example:
    from renderflow.imaging import ImageLoader

    loader = ImageLoader()
    image = await loader.load("https://cdn.example.com/render.png")
    natural_width, natural_height = image.size
"""

from renderflow.imaging.exceptions import ImagingError, SourceUnavailableError
from renderflow.imaging.loader import (
    ImageLoader,
    ImageLoaderProtocol,
    ImageSource,
    decode_data_url,
    describe_source,
    source_key,
)

__all__ = [
    "ImageLoader",
    "ImageLoaderProtocol",
    "ImageSource",
    "ImagingError",
    "SourceUnavailableError",
    "decode_data_url",
    "describe_source",
    "source_key",
]
