"""Client-side batch bookkeeping: inputs, per-image outcomes and totals."""
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from photo_resizer.services.metrics import round_half_up

from .processing_result import SizeMetrics


class BatchItem(BaseModel):
    name: str
    data: bytes

    @property
    def size(self) -> int:
        """True size of the file as selected by the user, before any pre-shrinking."""
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path) -> "BatchItem":
        path = Path(path)
        return cls(name=path.name, data=path.read_bytes())


class ImageOutcome(BaseModel):
    name: str
    original_size: int
    metrics: SizeMetrics | None = None
    output: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.output is not None


class BatchResult(BaseModel):
    outcomes: list[ImageOutcome] = []

    @property
    def succeeded(self) -> list[ImageOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[ImageOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def total_original(self) -> int:
        return sum(o.original_size for o in self.succeeded)

    @property
    def total_compressed(self) -> int:
        return sum(o.metrics.new_size for o in self.succeeded if o.metrics)

    @property
    def savings_percent(self) -> float:
        if self.total_original <= 0:
            return 0.0
        saved = (self.total_original - self.total_compressed) / self.total_original * 100
        return float(round_half_up(saved))
