"""Thin wrapper around the Cloudinary SDK for the two calls the scripts make."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Mapping

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from darkroom.config import SEARCH_PAGE_SIZE, CloudinarySettings

__all__ = ["CloudinaryClient", "CloudinaryError"]


class CloudinaryClient:
    """Configures the SDK once from settings; search and upload go through it."""

    def __init__(self, settings: CloudinarySettings):
        self.settings = settings
        cloudinary.config(
            cloud_name=settings.cloud_name,
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            secure=True,
        )

    def search(self, expression: str, max_results: int = SEARCH_PAGE_SIZE,
               next_cursor: str | None = None) -> dict:
        query = (
            cloudinary.Search()
            .expression(expression)
            .max_results(max_results)
            .sort_by("public_id", "asc")
            .with_field("context")
            .with_field("tags")
        )
        if next_cursor:
            query = query.next_cursor(next_cursor)
        return query.execute()

    def iter_resources(self, expression: str) -> Iterator[dict]:
        """Every resource matching expression, one page request after the other."""
        cursor = None
        while True:
            page = self.search(expression, next_cursor=cursor)
            yield from page.get("resources") or []
            cursor = page.get("next_cursor")
            if not cursor:
                break

    def upload(self, path: Path, folder: str, public_id: str, overwrite: bool = False,
               context: Mapping[str, str] | None = None) -> dict:
        options = {"folder": folder, "public_id": public_id, "overwrite": overwrite}
        context = {k: v for k, v in (context or {}).items() if v}
        if context:
            options["context"] = context
        return cloudinary.uploader.upload(str(path), **options)
