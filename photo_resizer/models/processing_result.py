from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

JPEG_DATA_URI_PREFIX = "data:image/jpeg;base64,"


class SizeMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_size: int = Field(..., alias="originalSize", ge=0)
    new_size: int = Field(..., alias="newSize", ge=0)
    reduction: str
    reduction_bytes: int = Field(..., alias="reductionBytes")


class ProcessingResult(BaseModel):
    """Outcome of one resize request; serialized straight into the response."""

    original_size: int
    new_size: int
    reduction_bytes: int
    reduction_label: str
    image_base64: str

    @property
    def metrics(self) -> SizeMetrics:
        return SizeMetrics(
            original_size=self.original_size,
            new_size=self.new_size,
            reduction=self.reduction_label,
            reduction_bytes=self.reduction_bytes,
        )

    def to_response(self) -> dict:
        return {
            "success": True,
            "image": f"{JPEG_DATA_URI_PREFIX}{self.image_base64}",
            "metrics": self.metrics.model_dump(by_alias=True),
        }
