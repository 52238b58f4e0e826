import asyncio
import io
import zipfile

import httpx
import pytest
from PIL import Image

from conftest import make_image
from photo_resizer.models import BatchItem, BatchResult, ImageOutcome, RGBColor, SizeMetrics, get_preset
from photo_resizer.models.processing_result import ProcessingResult
from photo_resizer.services.archive import archive_name, build_zip, output_name
from photo_resizer.services.batch_processor import BatchProcessor
from photo_resizer.services.resize_client import (
    ImageLoadError,
    ResizeAPIError,
    ResizeClient,
    prepare_upload,
)
from photo_resizer.utils.data_uri import decode_base64_image


def _client(app) -> ResizeClient:
    return ResizeClient("http://testserver", transport=httpx.ASGITransport(app=app))


def test_prepare_upload_bounds_longest_side():
    data = make_image((3000, 1500))
    uri = prepare_upload(data, max_dim=2048)
    assert uri.startswith("data:image/jpeg;base64,")
    with Image.open(io.BytesIO(decode_base64_image(uri))) as img:
        assert img.size == (2048, 1024)


def test_prepare_upload_keeps_small_images_and_converts_to_jpeg():
    data = make_image((300, 400), fmt="PNG", mode="RGBA", color=(1, 2, 3, 255))
    with Image.open(io.BytesIO(decode_base64_image(prepare_upload(data)))) as img:
        assert img.format == "JPEG"
        assert img.size == (300, 400)


def test_prepare_upload_rejects_garbage():
    with pytest.raises(ImageLoadError, match="Failed to load image"):
        prepare_upload(b"definitely not a photo")


def test_client_returns_metrics_and_bytes(app):
    async def scenario():
        async with _client(app) as client:
            return await client.process_image(
                prepare_upload(make_image((1600, 1200))),
                1080,
                1080,
                0.8,
                actual_original_size=2_000_000,
                background=RGBColor(r=0, g=0, b=0),
            )

    result, output = asyncio.run(scenario())
    assert result.original_size == 2_000_000
    assert result.new_size == len(output)
    assert result.reduction_bytes == 2_000_000 - len(output)
    with Image.open(io.BytesIO(output)) as img:
        assert img.size == (1080, 1080)


def test_client_raises_api_error_message(app):
    async def scenario():
        async with _client(app) as client:
            await client.process_image("ab$c", 10, 10, 0.5)

    with pytest.raises(ResizeAPIError) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.status == 400
    assert excinfo.value.message == "Invalid base64 format"


def test_batch_records_failure_and_continues(app):
    items = [
        BatchItem(name="beach.png", data=make_image((1600, 1200), fmt="PNG")),
        BatchItem(name="broken.jpg", data=b"\x00" * 500),
        BatchItem(name="city.jpeg", data=make_image((800, 1000))),
    ]
    progress = []

    async def scenario():
        async with _client(app) as client:
            return await BatchProcessor(client).run(
                items, get_preset("instagram"), 0.8, on_progress=progress.append
            )

    result = asyncio.run(scenario())

    assert [o.name for o in result.outcomes] == ["beach.png", "broken.jpg", "city.jpeg"]
    assert [o.ok for o in result.outcomes] == [True, False, True]
    assert result.outcomes[1].error == "Failed to load image"
    assert progress == pytest.approx([100 / 3, 200 / 3, 100.0])

    assert result.total_original == items[0].size + items[2].size
    assert result.total_compressed == sum(o.metrics.new_size for o in result.succeeded)
    for outcome in result.succeeded:
        assert outcome.metrics.original_size == outcome.original_size

    archive = zipfile.ZipFile(io.BytesIO(build_zip(result)))
    assert sorted(archive.namelist()) == ["beach_resized.jpg", "city_resized.jpg"]


class _FakeClient:
    def __init__(self, fail_on=(), delay=0.01):
        self.fail_on = set(fail_on)
        self.delay = delay
        self.in_flight = 0
        self.peak = 0
        self.calls = 0

    async def process_image(self, image, width, height, quality, *, actual_original_size=None, background=None, fit=None):
        self.calls += 1
        call = self.calls
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if call in self.fail_on:
                raise ResizeAPIError(500, "Failed to process image")
            new_size = 100
            result = ProcessingResult(
                original_size=actual_original_size,
                new_size=new_size,
                reduction_bytes=actual_original_size - new_size,
                reduction_label="x",
                image_base64="",
            )
            return result, b"\xff" * new_size
        finally:
            self.in_flight -= 1


def _items(count):
    return [BatchItem(name=f"img{i}.jpg", data=make_image((50, 50))) for i in range(count)]


def test_sequential_by_default():
    fake = _FakeClient()
    result = asyncio.run(BatchProcessor(fake).run(_items(4), get_preset("story"), 0.7))
    assert fake.peak == 1
    assert len(result.succeeded) == 4


def test_bounded_concurrency_isolates_failures():
    fake = _FakeClient(fail_on={2})
    progress = []
    result = asyncio.run(
        BatchProcessor(fake, concurrency=3).run(_items(8), get_preset("twitter"), 0.7, on_progress=progress.append)
    )
    assert 1 < fake.peak <= 3
    assert len(result.succeeded) == 7
    assert len(result.failed) == 1
    assert result.failed[0].error == "Failed to process image"
    assert progress[-1] == 100.0
    assert result.total_compressed == 7 * 100


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        BatchProcessor(_FakeClient(), concurrency=0)


def test_savings_percent():
    fake = _FakeClient()
    items = [BatchItem(name="a.jpg", data=make_image((50, 50)))]
    result = asyncio.run(BatchProcessor(fake).run(items, get_preset("instagram"), 0.8))
    expected = round((items[0].size - 100) / items[0].size * 100, 1)
    assert result.savings_percent == pytest.approx(expected, abs=0.05)


def test_output_and_archive_names():
    assert output_name("holiday.photo.PNG") == "holiday.photo_resized.jpg"
    assert output_name("noext") == "noext_resized.jpg"
    assert archive_name(1700000000000) == "resized_images_1700000000000.zip"


def test_zip_deduplicates_names():
    metrics = SizeMetrics(original_size=10, new_size=5, reduction="50.0% smaller", reduction_bytes=5)
    result = BatchResult(
        outcomes=[
            ImageOutcome(name="a.png", original_size=10, metrics=metrics, output=b"1"),
            ImageOutcome(name="a.jpg", original_size=10, metrics=metrics, output=b"2"),
            ImageOutcome(name="b.jpg", original_size=10, error="boom"),
        ]
    )
    archive = zipfile.ZipFile(io.BytesIO(build_zip(result)))
    assert archive.namelist() == ["a_resized.jpg", "a_resized_1.jpg"]
