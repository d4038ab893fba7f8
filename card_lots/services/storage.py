"""Image storage under <CARDLOTS_HOME>/uploads/<lot_id>/."""

import logging
import shutil
import time
import uuid
from pathlib import Path
from typing import Iterable, List, Tuple
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from card_lots.db.models import CardImage
from card_lots.utils import get_cardlots_home, new_id, sanitize_upload_name
from card_lots.vocab import IMAGE_EXTENSIONS

log = logging.getLogger(__name__)

USER_AGENT = "CardLots/0.1"

# Thumbnails fit inside this box, never enlarged
THUMBNAIL_SIZE = (200, 200)
THUMBNAIL_QUALITY = 80


def get_uploads_dir() -> Path:
    return get_cardlots_home() / "uploads"


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def is_image_name(name: str) -> bool:
    return Path(name).suffix.lower() in IMAGE_EXTENSIONS


def _unique_name(filename: str) -> Tuple[str, str]:
    """Return (stored name, thumbnail name) for an upload."""
    safe = sanitize_upload_name(filename)
    path = Path(safe)
    ext = path.suffix.lower() or ".jpg"
    unique = f"{path.stem}_{int(time.time() * 1000)}{uuid.uuid4().hex[:6]}{ext}"
    return unique, f"thumb_{Path(unique).stem}.jpg"


def _download(url: str, session: requests.Session) -> Tuple[str, bytes]:
    """Fetch an image URL. Returns (filename from the URL path, body)."""
    response = session.get(url, timeout=30)
    response.raise_for_status()
    name = Path(unquote(urlparse(url).path)).name or "image.jpg"
    return name, response.content


def make_thumbnail(original: Path, thumb: Path) -> None:
    """Write a JPEG thumbnail, rotated upright from the EXIF orientation."""
    with Image.open(original) as img:
        img = ImageOps.exif_transpose(img).convert("RGB")
        img.thumbnail(THUMBNAIL_SIZE, Image.LANCZOS)
        img.save(thumb, format="JPEG", quality=THUMBNAIL_QUALITY)


def store_image(lot_id: str, source: str, session: requests.Session = None) -> CardImage:
    """
    Copy one image (local path or http(s) URL) into the lot's upload folder.

    Returned paths are storage-relative ("uploads/<lot_id>/<name>").
    filename is the stored name and is what grouping sorts on.

    Raises:
        requests.exceptions.RequestException: download failed
        PIL.UnidentifiedImageError: the file is not a decodable image
            (the stored original is removed again)
    """
    lot_dir = get_uploads_dir() / lot_id
    thumb_dir = lot_dir / "thumbs"
    thumb_dir.mkdir(parents=True, exist_ok=True)

    if is_url(source):
        session = session or requests.Session()
        session.headers.setdefault("User-Agent", USER_AGENT)
        original_name, body = _download(source, session)
        stored, thumb = _unique_name(original_name)
        (lot_dir / stored).write_bytes(body)
    else:
        src = Path(source).expanduser().resolve()
        stored, thumb = _unique_name(src.name)
        shutil.copy2(str(src), str(lot_dir / stored))

    try:
        make_thumbnail(lot_dir / stored, thumb_dir / thumb)
    except UnidentifiedImageError:
        (lot_dir / stored).unlink()
        raise

    return CardImage(
        id=new_id(),
        original_path=f"uploads/{lot_id}/{stored}",
        thumb_path=f"uploads/{lot_id}/thumbs/{thumb}",
        filename=stored,
    )


def store_images(lot_id: str, sources: Iterable[str]) -> Tuple[List[CardImage], List[str]]:
    """
    Store every image source, skipping non-images and failed downloads.

    Returns:
        (stored images, skipped sources with reason)
    """
    stored: List[CardImage] = []
    skipped: List[str] = []
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})

    for source in sources:
        name = Path(urlparse(source).path).name if is_url(source) else source
        if not is_image_name(name):
            skipped.append(f"{source} (not an image)")
            continue
        if not is_url(source) and not Path(source).expanduser().is_file():
            skipped.append(f"{source} (file not found)")
            continue
        try:
            stored.append(store_image(lot_id, source, session=session))
        except requests.exceptions.RequestException as e:
            log.warning("Download failed for %s: %s", source, e)
            skipped.append(f"{source} (download failed)")
        except UnidentifiedImageError:
            log.warning("Not a readable image: %s", source)
            skipped.append(f"{source} (unreadable image)")

    return stored, skipped


def resolve_image_path(relative_path: str) -> Path:
    """Turn a stored reference back into a filesystem path."""
    clean = relative_path
    if clean.startswith("data/"):
        clean = clean[len("data/"):]
    if clean.startswith("uploads/"):
        clean = clean[len("uploads/"):]
    return get_uploads_dir() / clean


def remove_stored_images(images: Iterable[CardImage]) -> None:
    """Delete the original and thumbnail files of images that were never recorded."""
    for image in images:
        for path in (image.original_path, image.thumb_path):
            resolve_image_path(path).unlink(missing_ok=True)


def delete_lot_images(lot_id: str) -> None:
    """Remove a lot's upload folder (originals and thumbnails)."""
    shutil.rmtree(get_uploads_dir() / lot_id, ignore_errors=True)
