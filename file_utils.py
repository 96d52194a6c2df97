"""Filesystem helpers: safe names, asset filenames, and JSON/HTML persistence."""

import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Union
from urllib.parse import unquote, urlparse

logger = logging.getLogger('wp_content_sync.file_utils')

PathLike = Union[str, Path]

MAX_FILENAME_STEM = 50


def safe_dir_name(slug: str) -> str:
    """
    Create a filesystem-safe directory name from a post/page slug.

    Args:
        slug: Post or page slug

    Returns:
        Lowercased name containing only ``[a-z0-9-]``
    """
    name = re.sub(r'[^a-z0-9-]', '-', slug.lower())
    name = re.sub(r'-+', '-', name)
    return name.strip('-')


def get_content_dir(base_dir: PathLike, content_type: str, slug: str) -> Path:
    """Get the directory holding one exported post/page."""
    return Path(base_dir) / content_type / safe_dir_name(slug)


def generate_filename(url: str) -> str:
    """
    Derive a stable local filename for a remote asset URL.

    The readable part comes from the URL's basename; the suffix is a short
    hash of the full URL, so two URLs sharing a basename never collide and
    the same URL always yields the same name.

    Args:
        url: Asset URL (absolute or relative)

    Returns:
        Filename such as ``hero-banner-1a2b3c4d.jpg``
    """
    url_hash = hashlib.md5(url.encode('utf-8')).hexdigest()

    try:
        path = urlparse(url).path
    except ValueError:
        return f"image-{url_hash[:12]}.jpg"

    original_name = unquote(os.path.basename(path))
    stem, ext = os.path.splitext(original_name)
    if not ext or not re.fullmatch(r'\.[A-Za-z0-9]{1,8}', ext):
        stem, ext = original_name, '.jpg'

    safe_stem = re.sub(r'[^a-z0-9-]', '-', stem.lower())
    safe_stem = re.sub(r'-+', '-', safe_stem).strip('-')[:MAX_FILENAME_STEM].strip('-')
    if not safe_stem:
        safe_stem = 'image'

    return f"{safe_stem}-{url_hash[:8]}{ext.lower()}"


def ensure_dir(dir_path: PathLike) -> Path:
    """Create a directory (and parents) if missing."""
    path = Path(dir_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(file_path: Path, text: str) -> None:
    """Write text to a sibling temp file, then replace the target."""
    ensure_dir(file_path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{file_path.name}.", suffix='.tmp', dir=file_path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        os.replace(tmp_name, file_path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def write_json(file_path: PathLike, data: Any) -> None:
    """Write pretty-printed JSON, replacing the file atomically."""
    _atomic_write(Path(file_path), json.dumps(data, indent=2, ensure_ascii=False) + '\n')


def read_json(file_path: PathLike) -> Any:
    """Read and parse a JSON file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_html(file_path: PathLike, content: str) -> None:
    """Write HTML content, replacing the file atomically."""
    _atomic_write(Path(file_path), content)


def read_html(file_path: PathLike) -> str:
    """Read HTML content."""
    return Path(file_path).read_text(encoding='utf-8')


def list_subdirs(dir_path: PathLike) -> List[str]:
    """List subdirectory names, sorted; empty when the directory is missing."""
    path = Path(dir_path)
    if not path.is_dir():
        return []
    return sorted(entry.name for entry in path.iterdir() if entry.is_dir())


def list_files(dir_path: PathLike, extension: Optional[str] = None) -> List[str]:
    """
    List file names in a directory, sorted.

    Args:
        dir_path: Directory path
        extension: Optional extension filter (e.g. ``.json``)

    Returns:
        File names; empty when the directory is missing
    """
    path = Path(dir_path)
    if not path.is_dir():
        return []

    files = [entry.name for entry in path.iterdir() if entry.is_file()]
    if extension:
        files = [name for name in files if name.endswith(extension)]
    return sorted(files)


__all__ = [
    'safe_dir_name',
    'get_content_dir',
    'generate_filename',
    'ensure_dir',
    'write_json',
    'read_json',
    'write_html',
    'read_html',
    'list_subdirs',
    'list_files',
]
