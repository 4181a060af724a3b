"""Shared fixtures for darkroom tests."""

from __future__ import annotations

import cloudinary
import cloudinary.uploader
import pytest

from darkroom.config import CloudinarySettings
from darkroom.gallery import GalleryRenderer
from darkroom.lightbox import LightboxViewer
from darkroom.metadata import MetadataRegistry


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def registry() -> MetadataRegistry:
    return MetadataRegistry()


@pytest.fixture()
def viewer(registry: MetadataRegistry, clock: FakeClock) -> LightboxViewer:
    return LightboxViewer(registry, clock=clock)


@pytest.fixture()
def renderer(registry: MetadataRegistry, viewer: LightboxViewer) -> GalleryRenderer:
    return GalleryRenderer(registry, viewer)


@pytest.fixture()
def env() -> dict[str, str]:
    return {
        "CLOUDINARY_CLOUD_NAME": "demo",
        "CLOUDINARY_API_KEY": "key",
        "CLOUDINARY_API_SECRET": "secret",
    }


@pytest.fixture()
def settings(env: dict[str, str]) -> CloudinarySettings:
    return CloudinarySettings.from_env(env)


@pytest.fixture()
def items() -> list[dict]:
    """Records as darkroom-sync writes them."""
    base = "https://res.cloudinary.com/demo/image/upload/v1"
    return [
        {"url": f"{base}/images/landscapes/l1.jpg", "public_id": "images/landscapes/l1",
         "title": "Fjord", "caption": "Morning fog", "category": "landscapes", "featured": False},
        {"url": f"{base}/images/astro/a1.jpg", "public_id": "images/astro/a1",
         "title": "Andromeda", "caption": "M31", "category": "astro", "featured": False,
         "camera": "X-T30", "settings": "f/2.8, 20s, ISO 3200"},
        {"url": f"{base}/images/astro/a2.jpg", "public_id": "images/astro/a2",
         "title": "Star Trails", "caption": "", "category": "astro", "featured": True},
    ]


class FakeSearch:
    """Records the chained query the way cloudinary.Search builds it."""

    def __init__(self, backend: "FakeCloudinary"):
        self.backend = backend
        self.query: dict = {"sort_by": [], "with_field": []}

    def expression(self, value):
        self.query["expression"] = value
        return self

    def max_results(self, value):
        self.query["max_results"] = value
        return self

    def next_cursor(self, value):
        self.query["next_cursor"] = value
        return self

    def sort_by(self, field_name, direction="desc"):
        self.query["sort_by"].append({field_name: direction})
        return self

    def with_field(self, value):
        self.query["with_field"].append(value)
        return self

    def execute(self, **options):
        self.backend.searches.append(self.query)
        if self.backend.search_error is not None:
            raise self.backend.search_error
        return self.backend.pages[self.query.get("next_cursor")]


class FakeCloudinary:
    """Stands in for the Cloudinary API at the SDK call boundary."""

    def __init__(self):
        self.pages: dict = {None: {"resources": []}}
        self.searches: list[dict] = []
        self.search_error: Exception | None = None
        self.uploads: list[tuple[str, dict]] = []
        self.upload_errors: dict[str, Exception] = {}
        self.config: dict = {}

    def configure(self, **options):
        self.config.update(options)

    def upload(self, file, **options):
        error = self.upload_errors.get(options.get("public_id"))
        if error is not None:
            raise error
        self.uploads.append((file, options))
        return {"secure_url": f"https://res.cloudinary.com/demo/{options.get('public_id')}.jpg"}


@pytest.fixture()
def cloudinary_backend(monkeypatch) -> FakeCloudinary:
    backend = FakeCloudinary()
    monkeypatch.setattr(cloudinary, "Search", lambda: FakeSearch(backend))
    monkeypatch.setattr(cloudinary.uploader, "upload", backend.upload)
    monkeypatch.setattr(cloudinary, "config", backend.configure)
    return backend
