"""Default collaborator implementations for GardenMapper."""

from gardenmap.utils.image_resize import QtImageResizer, decode_image, encode_jpeg_data_uri
from gardenmap.utils.plant_lookup import (
    PerenualProvider,
    PlantSearch,
    TrefleProvider,
    WikipediaProvider,
    default_providers,
    references_from_perenual,
    references_from_trefle,
    references_from_wikipedia,
)
from gardenmap.utils.project_io import JsonProjectRepository

__all__ = [
    "JsonProjectRepository",
    "PerenualProvider",
    "PlantSearch",
    "QtImageResizer",
    "TrefleProvider",
    "WikipediaProvider",
    "decode_image",
    "default_providers",
    "encode_jpeg_data_uri",
    "references_from_perenual",
    "references_from_trefle",
    "references_from_wikipedia",
]
