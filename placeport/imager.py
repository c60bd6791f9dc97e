"""Placeholder image rendering with Pillow."""

from __future__ import annotations

from io import BytesIO
import math

from PIL import Image, ImageDraw, ImageFont

PALETTE = (
    (244, 67, 54),
    (255, 193, 7),
    (76, 175, 80),
    (33, 150, 243),
    (156, 39, 176),
)
TEXT_COLOR = (33, 33, 33)
BAND_COLOR = (255, 255, 255)
MIN_FONT_SIZE = 8


def default_square(width: int, height: int) -> int:
    return max(1, min(width, height) // 10)


def _square_grid(width: int, height: int, square: int) -> Image.Image:
    """Diagonal bands of palette colours, one pixel per square, scaled up."""

    square = min(square, max(width, height))
    cols = math.ceil(width / square)
    rows = math.ceil(height / square)
    cycle = b"".join(bytes(color) for color in PALETTE)
    repeats = math.ceil(cols / len(PALETTE)) + 1

    rows_data = []
    for row in range(rows):
        offset = (row % len(PALETTE)) * 3
        rotated = cycle[offset:] + cycle[:offset]
        rows_data.append((rotated * repeats)[: cols * 3])

    grid = Image.frombytes("RGB", (cols, rows), b"".join(rows_data))
    if square > 1:
        grid = grid.resize((cols * square, rows * square), Image.Resampling.NEAREST)
    return grid.crop((0, 0, width, height))


def _draw_caption(image: Image.Image, text: str) -> None:
    width, height = image.size
    font_size = max(MIN_FONT_SIZE, min(width // max(len(text), 1), height // 4))
    font = ImageFont.load_default(size=font_size)
    draw = ImageDraw.Draw(image)

    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    text_width = right - left
    text_height = bottom - top
    x = (width - text_width) // 2 - left
    y = (height - text_height) // 2 - top

    padding = max(2, font_size // 4)
    draw.rectangle(
        (0, y + top - padding, width, y + bottom + padding),
        fill=BAND_COLOR,
    )
    draw.text((x, y), text, fill=TEXT_COLOR, font=font)


def render_image(
    width: int,
    height: int,
    square: int | None = None,
    text: str | None = None,
) -> bytes:
    """Render a PNG placeholder; the caption defaults to the image size."""

    image = _square_grid(width, height, square or default_square(width, height))
    _draw_caption(image, text if text else f"{width}x{height}")

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
