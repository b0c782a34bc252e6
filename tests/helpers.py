"""
Image and data URL builders shared by the tests
"""
import base64
import io

from PIL import Image

from beforeafter.core.models import RawImageInput


def make_image(width=32, height=32, color=(255, 0, 0), mode="RGB"):
    """Solid colour Pillow image."""
    return Image.new(mode, (width, height), color)


def gradient_image(width=120, height=80):
    """Image with some structure so resampling and JPEG have work to do."""
    img = Image.new("RGB", (width, height))
    pixels = img.load()
    for x in range(width):
        for y in range(height):
            pixels[x, y] = ((x * 255) // max(width - 1, 1), (y * 255) // max(height - 1, 1), 128)
    return img


def image_bytes(img, fmt="PNG"):
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def raw_input(img, fmt="PNG", media_type=None, name="test.png"):
    data = image_bytes(img, fmt)
    return RawImageInput(data=data, media_type=media_type or f"image/{fmt.lower()}", name=name)


def data_url(img, fmt="PNG"):
    """Losslessly encoded data URL, for exact scoring tests."""
    payload = base64.b64encode(image_bytes(img, fmt)).decode("ascii")
    return f"data:image/{fmt.lower()};base64,{payload}"


def decode_data_url(url):
    payload = url.split(",", 1)[1]
    img = Image.open(io.BytesIO(base64.b64decode(payload)))
    img.load()
    return img
