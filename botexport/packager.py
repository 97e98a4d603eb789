"""Zip packaging of a generated file set.

Archives are built in memory.  Every entry gets the same fixed timestamp
and permissions, so packaging the same files twice yields identical bytes.
"""

from __future__ import annotations

import asyncio
import io
import zipfile
from collections.abc import Iterable

from .errors import PackagingFailed
from .graph.models import GeneratedFile

# Earliest timestamp the zip format can represent.
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)

COMPRESSION_METHODS: dict[str, int] = {
    "deflate": zipfile.ZIP_DEFLATED,
    "store": zipfile.ZIP_STORED,
}


def package(files: Iterable[GeneratedFile], compression: str = "deflate") -> bytes:
    """Serialise *files* into a zip archive.

    Args:
        files: Files to add, in order; ``path`` becomes the entry name.
        compression: ``"deflate"`` or ``"store"``.

    Returns:
        The archive bytes (starting with ``PK``).

    Raises:
        PackagingFailed: On an unknown compression method, a duplicate or
            unsafe entry path, or any error raised while writing the archive.
    """
    method = COMPRESSION_METHODS.get(compression)
    if method is None:
        raise PackagingFailed(f"Unknown compression method: {compression!r}")

    buffer = io.BytesIO()
    seen: set[str] = set()
    try:
        with zipfile.ZipFile(buffer, "w", compression=method) as zf:
            for generated in files:
                name = _entry_name(generated.path)
                if name in seen:
                    raise PackagingFailed(f"Duplicate archive entry: {name}")
                seen.add(name)
                info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
                info.compress_type = method
                info.external_attr = 0o644 << 16
                zf.writestr(info, generated.content.encode("utf-8"))
    except PackagingFailed:
        raise
    except (OSError, ValueError, UnicodeError, zipfile.LargeZipFile) as exc:
        raise PackagingFailed(f"Could not write zip archive: {exc}") from exc
    return buffer.getvalue()


async def package_async(files: Iterable[GeneratedFile], compression: str = "deflate") -> bytes:
    """Run :func:`package` in a worker thread so the event loop is not blocked."""
    return await asyncio.to_thread(package, list(files), compression)


def _entry_name(path: str) -> str:
    name = path.replace("\\", "/").lstrip("/")
    parts = name.split("/")
    if not name or any(part in ("", "..") for part in parts):
        raise PackagingFailed(f"Unsafe archive entry path: {path!r}")
    return name
