"""
Sync image metadata from Cloudinary into _data/images.yml.

Usage:
    CLOUDINARY_CLOUD_NAME=... CLOUDINARY_API_KEY=... CLOUDINARY_API_SECRET=... darkroom-sync

Optional: CLOUDINARY_FOLDER (default "images"), CLOUDINARY_FOLDERS (comma
separated), CLOUDINARY_SEARCH_EXPRESSION, CLOUDINARY_FALLBACK_CATEGORY.
"""

from __future__ import annotations

import posixpath
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable

import yaml

from darkroom.cloudinary_api import CloudinaryClient, CloudinaryError
from darkroom.config import DATA_FILE, CloudinarySettings, MissingCredentials

OPTIONAL_FIELDS = ("date", "camera", "settings")


@dataclass
class ImageRecord:
    url: str
    public_id: str
    title: str
    caption: str
    category: str
    featured: bool
    date: str = ""
    camera: str = ""
    settings: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in OPTIONAL_FIELDS:
            if not data[key]:
                del data[key]
        return data


def search_expressions(settings: CloudinarySettings) -> list[str]:
    if settings.search_expression:
        return [settings.search_expression]
    return [f"folder:{folder}/*" for folder in settings.target_folders]


def fetch_all(client: CloudinaryClient, expressions: Iterable[str]) -> list[dict]:
    resources = []
    for expression in expressions:
        print(f"  Searching {expression}")
        found = list(client.iter_resources(expression))
        print(f"  {len(found)} resources")
        resources.extend(found)
    return resources


def resource_to_record(resource: dict, settings: CloudinarySettings) -> ImageRecord:
    public_id = resource.get("public_id") or ""
    custom = (resource.get("context") or {}).get("custom") or {}

    # images/astro/landscapes/_111 -> landscapes
    parts = public_id.split("/")
    if len(parts) >= 2:
        category = parts[-2]
    else:
        category = settings.fallback_category or settings.folder

    return ImageRecord(
        url=resource.get("secure_url") or resource.get("url") or "",
        public_id=public_id,
        title=custom.get("title") or posixpath.basename(public_id),
        caption=custom.get("caption") or "",
        category=category,
        featured="featured" in (resource.get("tags") or []),
        date=custom.get("date") or "",
        camera=custom.get("camera") or "",
        settings=custom.get("settings") or "",
    )


def dedupe(records: Iterable[ImageRecord]) -> list[ImageRecord]:
    """Keep the first record per public id, in order."""
    seen = set()
    unique = []
    for record in records:
        key = record.public_id or record.url
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def write_data_file(records: list[ImageRecord], path: Path = DATA_FILE):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump([r.to_dict() for r in records], f, sort_keys=False, allow_unicode=True)
    print(f"  Wrote {path} with {len(records)} items")


def sync(settings: CloudinarySettings, client: CloudinaryClient, out: Path = DATA_FILE) -> list[ImageRecord]:
    print("Step 1: Fetching resources from Cloudinary...")
    resources = fetch_all(client, search_expressions(settings))
    print(f"  Found {len(resources)} resources")

    print("Step 2: Building records...")
    records = dedupe(resource_to_record(r, settings) for r in resources)
    if len(records) != len(resources):
        print(f"  Dropped {len(resources) - len(records)} duplicates")

    print("Step 3: Writing data file...")
    write_data_file(records, out)
    return records


def main(environ=None, out: Path = DATA_FILE) -> int:
    try:
        settings = CloudinarySettings.from_env(environ)
    except MissingCredentials as e:
        print(f"\n{e}", file=sys.stderr)
        print("This script will not run without credentials. Exiting.\n", file=sys.stderr)
        return 0

    try:
        sync(settings, CloudinaryClient(settings), out)
    except (CloudinaryError, OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error while syncing Cloudinary images: {e}", file=sys.stderr)
        return 1

    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
