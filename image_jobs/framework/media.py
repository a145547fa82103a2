"""Reference collaborators: a filesystem datastore and Pillow-backed image steps."""

from __future__ import annotations

import io
import logging
import os
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from jobkit import Artifact

logger = logging.getLogger(__name__)

_GEOMETRY_RE = re.compile(r"^(?P<width>\d+)?x(?P<height>\d+)?$")

# Pillow format names keyed by the lower-case names used in jobs and URLs.
PIL_FORMATS: dict[str, str] = {
    "png": "PNG",
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
}


def parse_geometry(geometry: Any) -> tuple[int | None, int | None]:
    """Parse "WxH", "Wx" or "xH" into a (width, height) pair."""

    if not isinstance(geometry, str):
        raise ValueError(f"Geometry must be a string like '40x40' (got {geometry!r})")
    match = _GEOMETRY_RE.match(geometry.strip())
    if match is None or not (match.group("width") or match.group("height")):
        raise ValueError(f"Invalid geometry: {geometry!r}")
    width = int(match.group("width")) if match.group("width") else None
    height = int(match.group("height")) if match.group("height") else None
    if width == 0 or height == 0:
        raise ValueError(f"Invalid geometry: {geometry!r}")
    return width, height


def _open_image(artifact: Artifact) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(artifact.data))
        image.load()
    except UnidentifiedImageError as exc:
        raise ValueError(f"Artifact is not a readable image (name={artifact.name})") from exc
    return image


def _dump_image(image: Image.Image, fmt: str, **save_kwargs: Any) -> bytes:
    pil_format = PIL_FORMATS.get(fmt.lower())
    if pil_format is None:
        raise ValueError(f"Unsupported image format: {fmt} (supported: {', '.join(PIL_FORMATS)})")
    if pil_format in ("JPEG", "BMP") and image.mode not in ("RGB", "L"):
        # Convert to RGB in case the source has an alpha channel
        image = image.convert("RGB")
    buf = io.BytesIO()
    image.save(buf, format=pil_format, **save_kwargs)
    return buf.getvalue()


def _source_format(image: Image.Image, artifact: Artifact) -> str:
    fmt = artifact.format or (image.format or "png")
    return str(fmt).lower()


def _renamed(name: str | None, fmt: str) -> str | None:
    if not name:
        return None
    stem, _ext = os.path.splitext(name)
    return f"{stem}.{'jpg' if fmt == 'jpeg' else fmt}"


class FileDataStore:
    """Stores artifacts as files under `root`, keyed by a relative uid path."""

    def __init__(self, root: str | os.PathLike[str], *, create: bool = False):
        self.root = Path(root).resolve()
        if create:
            self.root.mkdir(parents=True, exist_ok=True)
        elif not self.root.is_dir():
            raise FileNotFoundError(f"Datastore root does not exist: {self.root}")

    def _path_for(self, uid: Any) -> Path:
        if not isinstance(uid, str) or not uid.strip():
            raise ValueError(f"Datastore uid must be a non-empty string (got {uid!r})")
        path = (self.root / uid.strip()).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValueError(f"Datastore uid escapes the datastore root: {uid!r}")
        return path

    def retrieve(self, uid: str) -> tuple[bytes, dict[str, Any]]:
        path = self._path_for(uid)
        if not path.is_file():
            raise FileNotFoundError(f"No stored data for uid: {uid}")
        return path.read_bytes(), {"name": path.name, "uid": uid}

    def store(self, data: bytes, *, name: str | None = None) -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        basename = os.path.basename(name or "") or "file"
        uid = f"{stamp}/{uuid.uuid4().hex[:12]}_{basename}"
        path = self._path_for(uid)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Stored %d bytes as %s", len(data), uid)
        return uid

    def destroy(self, uid: str) -> None:
        path = self._path_for(uid)
        if not path.is_file():
            raise FileNotFoundError(f"No stored data for uid: {uid}")
        path.unlink()


class PillowProcessor:
    def __init__(self) -> None:
        self._operations: dict[str, Callable[..., Image.Image]] = {
            "resize": self._resize,
            "thumb": self._thumb,
            "rotate": self._rotate,
            "greyscale": self._greyscale,
            "crop": self._crop,
        }

    def operations(self) -> tuple[str, ...]:
        return tuple(sorted(self._operations))

    def process(self, artifact: Artifact, name: str, *params: Any) -> tuple[bytes, dict[str, Any]]:
        operation = self._operations.get(name)
        if operation is None:
            raise ValueError(
                f"Unknown processor operation: {name} (available: {', '.join(self.operations())})"
            )
        with _open_image(artifact) as image:
            fmt = _source_format(image, artifact)
            result = operation(image, *params)
            data = _dump_image(result, fmt)
        return data, {"name": artifact.name, "format": fmt}

    def _resize(self, image: Image.Image, geometry: str) -> Image.Image:
        width, height = parse_geometry(geometry)
        if width is None:
            width = max(1, round(image.width * height / image.height))
        if height is None:
            height = max(1, round(image.height * width / image.width))
        return image.resize((width, height))

    def _thumb(self, image: Image.Image, geometry: str) -> Image.Image:
        width, height = parse_geometry(geometry)
        thumb = image.copy()
        thumb.thumbnail((width or image.width, height or image.height))
        return thumb

    def _rotate(self, image: Image.Image, degrees: Any) -> Image.Image:
        return image.rotate(-float(degrees), expand=True)

    def _greyscale(self, image: Image.Image) -> Image.Image:
        return ImageOps.grayscale(image)

    def _crop(self, image: Image.Image, x: Any, y: Any, width: Any, height: Any) -> Image.Image:
        left, top = int(x), int(y)
        return image.crop((left, top, left + int(width), top + int(height)))


class PillowEncoder:
    def __init__(self, *, default_quality: int = 85):
        self.default_quality = default_quality

    def encode(self, artifact: Artifact, format: str, *params: Any) -> tuple[bytes, dict[str, Any]]:
        fmt = str(format).lower()
        save_kwargs: dict[str, Any] = {}
        if PIL_FORMATS.get(fmt) in ("JPEG", "WEBP"):
            save_kwargs["quality"] = int(params[0]) if params else self.default_quality
        with _open_image(artifact) as image:
            data = _dump_image(image, fmt, **save_kwargs)
        return data, {"name": _renamed(artifact.name, fmt), "format": fmt}


class PillowGenerator:
    def generate(self, name: str, *params: Any) -> tuple[bytes, dict[str, Any]]:
        if name == "plain":
            return self._plain(*params)
        if name == "text":
            return self._text(*params)
        raise ValueError(f"Unknown generator: {name} (available: plain, text)")

    def _plain(self, width: Any, height: Any, colour: str = "white") -> tuple[bytes, dict[str, Any]]:
        image = Image.new("RGB", (int(width), int(height)), color=colour)
        return _dump_image(image, "png"), {"name": "plain.png", "format": "png"}

    def _text(self, text: Any, padding: Any = 4) -> tuple[bytes, dict[str, Any]]:
        content = str(text)
        pad = int(padding)
        font = ImageFont.load_default()
        probe = ImageDraw.Draw(Image.new("RGB", (1, 1)))
        left, top, right, bottom = probe.textbbox((0, 0), content, font=font)
        image = Image.new("RGB", (right - left + 2 * pad, bottom - top + 2 * pad), color="white")
        ImageDraw.Draw(image).text((pad - left, pad - top), content, fill="black", font=font)
        return _dump_image(image, "png"), {"name": "text.png", "format": "png"}


class PillowAnalyser:
    analysis_methods: tuple[str, ...] = ("width", "height", "aspect_ratio", "format", "image")

    def analyse(self, artifact: Artifact, method: str, *params: Any) -> Any:
        if method == "image":
            try:
                with _open_image(artifact):
                    return True
            except ValueError:
                return False
        if method not in self.analysis_methods:
            raise ValueError(f"Unknown analysis method: {method}")

        with _open_image(artifact) as image:
            if method == "width":
                return image.width
            if method == "height":
                return image.height
            if method == "aspect_ratio":
                return image.width / image.height
            return (image.format or "").lower() or None
