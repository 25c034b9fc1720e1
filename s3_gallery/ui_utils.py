from __future__ import annotations
"""UI-agnostic helpers for filtering and formatting gallery entries."""
from dataclasses import dataclass
from datetime import datetime
from importlib.metadata import PackageNotFoundError, metadata, version
from typing import Callable, Iterable
from urllib.parse import quote

from .models import FileObject

DIST_NAME = "s3-image-gallery"
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg"})
SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str
    summary: str
    homepage: str | None
    repository: str | None


def load_package_info(dist_name: str = DIST_NAME) -> PackageInfo:
    try:
        distribution_metadata = metadata(dist_name)
        package_version = version(dist_name)
    except PackageNotFoundError:
        return PackageInfo(
            name="S3 Image Gallery",
            version="",
            summary="Browse and delete images stored in an S3 bucket.",
            homepage=None,
            repository=None,
        )
    homepage = distribution_metadata.get("Home-page")
    repository = None
    for entry in distribution_metadata.get_all("Project-URL") or []:
        label, _, link = entry.partition(",")
        label = label.strip().lower()
        url = link.strip()
        if label == "repository":
            repository = url
        elif label == "homepage" and not homepage:
            homepage = url
    return PackageInfo(
        name=distribution_metadata.get("Name"),
        version=package_version,
        summary=distribution_metadata.get("Summary") or "",
        homepage=homepage or None,
        repository=repository,
    )


def file_extension(key: str) -> str:
    """Return the text after the last ``.`` in ``key``, or ``""``."""
    _, dot, ext = key.rpartition(".")
    return ext if dot else ""


def is_image_key(key: str) -> bool:
    if not key:
        return False
    return file_extension(key).lower() in IMAGE_EXTENSIONS


def filter_images(
    objects: Iterable[FileObject],
    predicate: Callable[[str], bool] = is_image_key,
) -> list[FileObject]:
    return [obj for obj in objects if obj.key and predicate(obj.key)]


def format_file_size(size: int | None) -> str:
    """Human readable size using base-1024 units.

    The largest unit whose scaled value is at least one is chosen and the
    value is rounded to two decimals, e.g. ``1536`` becomes ``"1.5 KB"``.
    """
    if size is None:
        return "Unknown"
    value = float(max(size, 0))
    unit = SIZE_UNITS[0]
    for candidate in SIZE_UNITS[1:]:
        if value < 1024:
            break
        value /= 1024
        unit = candidate
    text = f"{round(value, 2):.2f}".rstrip("0").rstrip(".")
    return f"{text} {unit}"


def file_extension_label(key: str) -> str:
    return file_extension(key).upper() or "UNKNOWN"


def display_name(key: str) -> str:
    return key.rsplit("/", 1)[-1] or key


def format_last_modified(last_modified: object) -> str:
    if not last_modified:
        return "-"
    if isinstance(last_modified, datetime):
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or last_modified.isoformat()
    return str(last_modified)


def build_object_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(key, safe='/~')}"


def make_url_resolver(base_url: str) -> Callable[[str], str]:
    """Return a pure ``key -> URL`` function rooted at ``base_url``."""

    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("A public base URL is required")

    def _resolve(key: str) -> str:
        return build_object_url(cleaned, key)

    return _resolve


def gallery_title(count: int, has_more: bool) -> str:
    suffix = "+" if has_more else ""
    return f"Image Gallery ({count}{suffix} images)"
