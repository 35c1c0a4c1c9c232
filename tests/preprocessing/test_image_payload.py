import base64
import io

import pytest
from PIL import Image

from allergen_scanner.errors import ValidationError
from allergen_scanner.preprocessing.image_payload import decode_image_payload


def _make_image_bytes(fmt: str = "PNG", w: int = 32, h: int = 16) -> bytes:
    img = Image.new("RGB", (w, h), color=(255, 255, 255))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def test_accepts_raw_png_bytes():
    out = decode_image_payload(_make_image_bytes())

    assert out.mime_type == "image/png"
    assert (out.width, out.height) == (32, 16)
    assert base64.b64decode(out.b64) == _make_image_bytes()


def test_accepts_base64_jpeg_string():
    data = _make_image_bytes("JPEG")
    out = decode_image_payload(base64.b64encode(data).decode("ascii"))

    assert out.mime_type == "image/jpeg"
    assert out.size_bytes == len(data)


def test_accepts_data_uri_prefix():
    b64 = base64.b64encode(_make_image_bytes()).decode("ascii")
    out = decode_image_payload(f"data:image/png;base64,{b64}")
    assert out.mime_type == "image/png"


@pytest.mark.parametrize("image", [None, "", "   ", b""])
def test_rejects_missing_image(image):
    with pytest.raises(ValidationError):
        decode_image_payload(image)


def test_rejects_invalid_base64():
    with pytest.raises(ValidationError) as e:
        decode_image_payload("this is not base64!!")
    assert "base64" in str(e.value)


def test_rejects_corrupted_image_bytes():
    with pytest.raises(ValidationError):
        decode_image_payload(b"not-a-real-image")


def test_rejects_too_large_payload():
    big = b"\x00" * (1 * 1024 * 1024 + 1)
    with pytest.raises(ValidationError) as e:
        decode_image_payload(big, max_mb=1)
    assert "max size" in str(e.value)


def test_rejects_unsupported_format():
    with pytest.raises(ValidationError) as e:
        decode_image_payload(_make_image_bytes("BMP"))
    assert "Unsupported" in str(e.value)
