"""
Upload a local images/ folder to Cloudinary, keeping subfolders in the public id.

Usage:
    darkroom-upload [--dry-run] [--pattern "images/**/*.jpg"]

Camera, capture date and exposure settings are read from EXIF and stored as
context on the uploaded asset, where darkroom-sync picks them up again.
"""

from __future__ import annotations

import argparse
import math
import sys
from pathlib import Path, PurePath

from PIL import Image, UnidentifiedImageError
from wcmatch import glob

from darkroom.cloudinary_api import CloudinaryClient, CloudinaryError
from darkroom.config import DEFAULT_UPLOAD_PATTERN, CloudinarySettings, MissingCredentials

# EXIF tag ids
TAG_MODEL = 0x0110
TAG_DATETIME = 0x0132
TAG_EXIF_IFD = 0x8769
TAG_EXPOSURE_TIME = 0x829A
TAG_FNUMBER = 0x829D
TAG_ISO = 0x8827
TAG_DATETIME_ORIGINAL = 0x9003

GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.NODIR


def find_files(pattern: str) -> list[str]:
    return sorted(glob.glob(pattern, flags=GLOB_FLAGS))


def public_id_for(path: str) -> str:
    """images/astro/_00001.jpg -> astro/_00001"""
    parts = PurePath(path.replace("\\", "/")).with_suffix("").parts
    if "images" in parts:
        parts = parts[parts.index("images") + 1:]
    return "/".join(parts)


def _positive(value) -> float:
    number = float(value)
    # 0/0 rationals come back as nan
    if math.isnan(number) or math.isinf(number) or number <= 0:
        raise ValueError(f"not a positive number: {value!r}")
    return number


def _format_fnumber(value) -> str:
    return f"f/{_positive(value):g}"


def _format_exposure(value) -> str:
    """20 -> ``20s``, 1/80 -> ``1/80s``, 1/32000 -> ``1/32000s``"""
    seconds = _positive(value)
    if seconds >= 1:
        return f"{seconds:g}s"
    return f"1/{round(1 / seconds)}s"


def _format_iso(value) -> str:
    if isinstance(value, (tuple, list)):
        value = value[0]
    return f"ISO {int(value)}"


SETTINGS_TAGS = (
    (TAG_FNUMBER, _format_fnumber),
    (TAG_EXPOSURE_TIME, _format_exposure),
    (TAG_ISO, _format_iso),
)


def read_exif(path: Path) -> dict[str, str]:
    """Date, camera and settings from a photo's EXIF, whatever of them is present."""
    meta = {}
    try:
        with Image.open(path) as img:
            exif = img.getexif()
    except (OSError, UnidentifiedImageError):
        return meta
    sub = exif.get_ifd(TAG_EXIF_IFD)

    taken = sub.get(TAG_DATETIME_ORIGINAL) or exif.get(TAG_DATETIME)
    if taken:
        # "2024:07:01 22:14:03" -> "2024-07-01"
        meta["date"] = str(taken)[:10].replace(":", "-")
    model = exif.get(TAG_MODEL)
    if model:
        meta["camera"] = str(model).strip("\x00 ")

    settings = []
    for tag, fmt in SETTINGS_TAGS:
        if sub.get(tag) is None:
            continue
        try:
            settings.append(fmt(sub[tag]))
        except (TypeError, ValueError, IndexError, ZeroDivisionError):
            # an unreadable value drops only that setting
            continue
    if settings:
        meta["settings"] = ", ".join(settings)
    return meta


def upload_file(client: CloudinaryClient, local_path: str, folder: str) -> dict | None:
    """Upload one file; failures are reported and yield None."""
    try:
        context = read_exif(Path(local_path))
    except Exception as e:
        print(f"  Could not read EXIF from {local_path}: {e}", file=sys.stderr)
        context = {}
    try:
        res = client.upload(
            Path(local_path),
            folder=folder,
            public_id=public_id_for(local_path),
            overwrite=False,
            context=context,
        )
    except (CloudinaryError, OSError, ValueError) as e:
        print(f"  Upload failed for {local_path}: {e}", file=sys.stderr)
        return None
    print(f"  Uploaded: {local_path} -> {res.get('secure_url', '')}")
    return res


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Upload local images to Cloudinary.")
    parser.add_argument("--dry-run", action="store_true",
                        help="list the files that would be uploaded and exit")
    parser.add_argument("--pattern", default=DEFAULT_UPLOAD_PATTERN,
                        help=f"glob of files to upload (default: {DEFAULT_UPLOAD_PATTERN})")
    return parser.parse_args(argv)


def main(argv=None, environ=None) -> int:
    args = parse_args(argv)
    try:
        settings = CloudinarySettings.from_env(environ)
    except MissingCredentials as e:
        print(e, file=sys.stderr)
        return 0

    files = find_files(args.pattern)
    if not files:
        print(f"No files found for pattern: {args.pattern}")
        return 0

    print(f"Found {len(files)} files to upload (pattern: {args.pattern})")
    if args.dry_run:
        for f in files:
            print(f"  [dry-run] would upload {f}")
        return 0

    print(f"Starting upload to Cloudinary folder: {settings.folder}")
    uploaded = 0
    client = CloudinaryClient(settings)
    for i, f in enumerate(files):
        if upload_file(client, f, settings.folder) is not None:
            uploaded += 1
        if (i + 1) % 25 == 0 or i + 1 == len(files):
            print(f"  [{i+1}/{len(files)}] processed")

    print(f"\nUpload run finished ({uploaded}/{len(files)} uploaded). "
          "Run darkroom-sync to refresh _data/images.yml")
    return 0


if __name__ == "__main__":
    sys.exit(main())
