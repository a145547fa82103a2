import io

import pytest
from PIL import Image

from jobkit import Artifact
from image_jobs.framework.media import (
    FileDataStore,
    PillowAnalyser,
    PillowEncoder,
    PillowGenerator,
    PillowProcessor,
    parse_geometry,
)


def _png(width: int = 40, height: int = 20, mode: str = "RGBA") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, (width, height), color="red").save(buf, format="PNG")
    return buf.getvalue()


def _open(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@pytest.mark.parametrize(
    "geometry,expected",
    [("40x30", (40, 30)), ("40x", (40, None)), ("x30", (None, 30)), (" 8x8 ", (8, 8))],
)
def test_parse_geometry(geometry, expected):
    assert parse_geometry(geometry) == expected


@pytest.mark.parametrize("geometry", ["x", "40", "0x10", "axb", 40, None])
def test_parse_geometry_rejects_invalid_values(geometry):
    with pytest.raises(ValueError):
        parse_geometry(geometry)


def test_datastore_store_retrieve_destroy(tmp_path):
    store = FileDataStore(tmp_path / "media", create=True)

    uid = store.store(b"hello", name="greeting.txt")

    assert uid.endswith("_greeting.txt")
    assert uid.count("/") == 3
    data, meta = store.retrieve(uid)
    assert data == b"hello"
    assert meta == {"name": uid.rsplit("/", 1)[1], "uid": uid}

    store.destroy(uid)
    with pytest.raises(FileNotFoundError, match="No stored data for uid"):
        store.retrieve(uid)


def test_datastore_rejects_escaping_and_blank_uids(tmp_path):
    store = FileDataStore(tmp_path, create=True)
    with pytest.raises(ValueError, match="escapes the datastore root"):
        store.retrieve("../outside.png")
    with pytest.raises(ValueError, match="non-empty string"):
        store.retrieve("  ")


def test_datastore_requires_existing_root_unless_create(tmp_path):
    with pytest.raises(FileNotFoundError, match="Datastore root does not exist"):
        FileDataStore(tmp_path / "missing")


def test_processor_resize_and_thumb():
    processor = PillowProcessor()
    source = Artifact(_png(40, 20), {"name": "a.png"})

    data, meta = processor.process(source, "resize", "10x")
    assert _open(data).size == (10, 5)
    assert meta == {"name": "a.png", "format": "png"}

    data, _meta = processor.process(source, "thumb", "10x10")
    assert _open(data).size == (10, 5)


def test_processor_rotate_greyscale_and_crop():
    processor = PillowProcessor()
    source = Artifact(_png(40, 20))

    rotated, _meta = processor.process(source, "rotate", 90)
    assert _open(rotated).size == (20, 40)

    grey, _meta = processor.process(source, "greyscale")
    assert _open(grey).mode == "L"

    cropped, _meta = processor.process(source, "crop", 5, 5, 10, 8)
    assert _open(cropped).size == (10, 8)


def test_processor_rejects_unknown_operations_and_non_images():
    processor = PillowProcessor()
    with pytest.raises(ValueError, match=r"Unknown processor operation: melt \(available: crop"):
        processor.process(Artifact(_png()), "melt")
    with pytest.raises(ValueError, match="not a readable image"):
        processor.process(Artifact(b"plain text", {"name": "notes.txt"}), "greyscale")


def test_encoder_converts_format_and_renames():
    encoder = PillowEncoder(default_quality=70)
    data, meta = encoder.encode(Artifact(_png(), {"name": "photo.png"}), "jpg")

    assert _open(data).format == "JPEG"
    assert meta == {"name": "photo.jpg", "format": "jpg"}


def test_encoder_rejects_unsupported_formats():
    with pytest.raises(ValueError, match="Unsupported image format: tiff"):
        PillowEncoder().encode(Artifact(_png()), "tiff")


def test_generator_plain_and_text():
    generator = PillowGenerator()

    data, meta = generator.generate("plain", 12, 7, "blue")
    image = _open(data)
    assert image.size == (12, 7)
    assert image.getpixel((0, 0)) == (0, 0, 255)
    assert meta["format"] == "png"

    data, meta = generator.generate("text", "hello")
    assert _open(data).width > 8
    assert meta["name"] == "text.png"

    with pytest.raises(ValueError, match="Unknown generator: noise"):
        generator.generate("noise")


def test_analyser_methods():
    analyser = PillowAnalyser()
    artifact = Artifact(_png(40, 20))

    assert analyser.analyse(artifact, "width") == 40
    assert analyser.analyse(artifact, "height") == 20
    assert analyser.analyse(artifact, "aspect_ratio") == 2.0
    assert analyser.analyse(artifact, "format") == "png"
    assert analyser.analyse(artifact, "image") is True
    assert analyser.analyse(Artifact(b"nope"), "image") is False
