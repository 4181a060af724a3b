"""Paths, constants and environment handling shared by the darkroom scripts."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DATA_FILE = Path("_data") / "images.yml"
PREVIEW_DIR = Path("preview")

DEFAULT_FOLDER = "images"
DEFAULT_UPLOAD_PATTERN = "images/**/*.{jpg,jpeg,png,JPG,JPEG,PNG,webp}"
DEFAULT_CAMERA = "Fujifilm XT-30"
PREFERRED_CATEGORY = "astro"
PORTRAIT_CATEGORY = "Of_the_photographer"

FADE_DELAY = 0.9        # seconds of pointer idleness before lightbox controls fade
SWIPE_THRESHOLD = 48    # px of horizontal travel a swipe must exceed

SEARCH_PAGE_SIZE = 500


class MissingCredentials(Exception):
    """Raised when the Cloudinary credentials are not all present."""


@dataclass(frozen=True)
class CloudinarySettings:
    cloud_name: str
    api_key: str
    api_secret: str
    folder: str = DEFAULT_FOLDER
    folders: tuple[str, ...] = ()
    search_expression: str = ""
    fallback_category: str = ""

    @classmethod
    def from_env(cls, environ=None) -> "CloudinarySettings":
        """Build settings from the environment (and a .env file if present)."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        cloud_name = (
            environ.get("CLOUDINARY_CLOUD_NAME")
            or environ.get("CLOUDINARY_CLOUDNAME")
            or environ.get("CLOUDINARY_CLOUD")
        )
        api_key = environ.get("CLOUDINARY_API_KEY")
        api_secret = environ.get("CLOUDINARY_API_SECRET")
        if not cloud_name or not api_key or not api_secret:
            raise MissingCredentials(
                "Missing Cloudinary credentials. Please set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET in the environment or an .env file."
            )

        folders = tuple(
            f.strip().strip("/")
            for f in environ.get("CLOUDINARY_FOLDERS", "").split(",")
            if f.strip().strip("/")
        )
        return cls(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            folder=environ.get("CLOUDINARY_FOLDER") or DEFAULT_FOLDER,
            folders=folders,
            search_expression=environ.get("CLOUDINARY_SEARCH_EXPRESSION", "").strip(),
            fallback_category=environ.get("CLOUDINARY_FALLBACK_CATEGORY", "").strip(),
        )

    @property
    def target_folders(self) -> tuple[str, ...]:
        return self.folders or (self.folder,)
