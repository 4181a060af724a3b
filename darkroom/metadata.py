"""Image metadata registry.

Rendered gallery images carry their descriptive fields as attributes
(``data-title``, ``data-caption``, ...). The registry reads those once per
element and answers lookups by any of the image's references: its
thumbnail URL, full-resolution URL or Cloudinary public id.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

from darkroom.config import DEFAULT_CAMERA

NO_DESCRIPTION = "No description."
NOT_AVAILABLE = "N/A"


def prettify_filename(ref: str) -> str:
    """Turn ``.../_night_sky_02.jpg`` into ``Night Sky 02``."""
    name = re.split(r"[?#]", ref or "", maxsplit=1)[0].rstrip("/")
    name = name.rsplit("/", 1)[-1]
    name = re.sub(r"\.[^.]+$", "", name)
    name = name.lstrip("_")
    name = re.sub(r"[_\-\s]+", " ", name).strip()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), name)


def references_match(a: str, b: str) -> bool:
    """True if both point at the same image, tolerating absolute vs relative URLs."""
    if not a or not b:
        return False
    if a == b:
        return True
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    shorter = shorter.lstrip("/")
    return longer.endswith("/" + shorter)


@dataclass(frozen=True)
class ImageMetadata:
    title: str
    description: str = ""
    date: str = ""
    camera: str = DEFAULT_CAMERA
    settings: str = ""

    def details(self) -> list[tuple[str, str]]:
        """Rows of the lightbox details panel."""
        return [
            ("Description", self.description or NOT_AVAILABLE),
            ("Date", self.date or NOT_AVAILABLE),
            ("Camera", self.camera or NOT_AVAILABLE),
            ("Settings", self.settings or NOT_AVAILABLE),
        ]


@dataclass(frozen=True)
class ImageAttributes:
    """The attributes of one rendered image element, read once."""

    src: str = ""
    current_src: str = ""
    full: str = ""
    title: str = ""
    alt: str = ""
    caption: str = ""
    date: str = ""
    camera: str = ""
    settings: str = ""
    public_id: str = ""

    @classmethod
    def from_element(cls, attrs: Mapping[str, str]) -> "ImageAttributes":
        def get(name):
            return (attrs.get(name) or "").strip()

        return cls(
            # deferred images keep their source in data-src until hydrated
            src=get("src") or get("data-src"),
            current_src=get("currentSrc"),
            full=get("data-full"),
            title=get("data-title"),
            alt=get("alt"),
            caption=get("data-caption"),
            date=get("data-date"),
            camera=get("data-camera"),
            settings=get("data-settings"),
            public_id=get("data-public-id"),
        )

    @property
    def reference(self) -> str:
        return self.full or self.current_src or self.src

    @property
    def aliases(self) -> list[str]:
        seen = []
        for ref in (self.src, self.current_src, self.full, self.public_id):
            if ref and ref not in seen:
                seen.append(ref)
        return seen

    def metadata(self) -> ImageMetadata:
        return ImageMetadata(
            title=self.title or self.alt or prettify_filename(self.reference or self.public_id),
            description=self.caption,
            date=self.date,
            camera=self.camera or DEFAULT_CAMERA,
            settings=self.settings,
        )


def fallback_metadata(ref: str) -> ImageMetadata:
    return ImageMetadata(
        title=prettify_filename(ref),
        description=NO_DESCRIPTION,
        date="",
        camera=DEFAULT_CAMERA,
        settings="",
    )


@dataclass
class MetadataRegistry:
    """Maps image references to their metadata."""

    entries: dict[str, ImageMetadata] = field(default_factory=dict)

    @classmethod
    def from_table(cls, table: Mapping[str, Mapping[str, str]]) -> "MetadataRegistry":
        """Seed a registry from a static reference -> fields lookup table."""
        registry = cls()
        for ref, fields in table.items():
            registry.entries[ref] = ImageMetadata(
                title=fields.get("title") or prettify_filename(ref),
                description=fields.get("description", ""),
                date=fields.get("date", ""),
                camera=fields.get("camera") or DEFAULT_CAMERA,
                settings=fields.get("settings", ""),
            )
        return registry

    def register(self, image) -> ImageMetadata:
        """Register an element, an attribute mapping or ImageAttributes."""
        if isinstance(image, ImageAttributes):
            attributes = image
        else:
            attrs = getattr(image, "attrs", image)
            attributes = ImageAttributes.from_element(attrs)

        meta = attributes.metadata()
        for alias in attributes.aliases:
            self.entries[alias] = meta
        return meta

    def lookup(self, ref: str) -> ImageMetadata:
        if ref in self.entries:
            return self.entries[ref]
        for key, meta in self.entries.items():
            if references_match(ref, key):
                return meta
        return fallback_metadata(ref)

    def __len__(self):
        return len(self.entries)
