from .batch import BatchItem, BatchResult, ImageOutcome
from .color import RGBColor, WHITE
from .fit import FitMode
from .image_request import ImageRequest, REQUIRED_FIELDS, missing_fields
from .preset import PRESETS, Preset, get_preset
from .processing_result import JPEG_DATA_URI_PREFIX, ProcessingResult, SizeMetrics

__all__ = [
    "BatchItem",
    "BatchResult",
    "ImageOutcome",
    "RGBColor",
    "WHITE",
    "FitMode",
    "ImageRequest",
    "REQUIRED_FIELDS",
    "missing_fields",
    "PRESETS",
    "Preset",
    "get_preset",
    "JPEG_DATA_URI_PREFIX",
    "ProcessingResult",
    "SizeMetrics",
]
