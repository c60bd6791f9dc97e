"""Random image parameters, words and inspirational quotes."""

from __future__ import annotations

import random
from urllib.parse import urlencode

from placeport.validation import GRID_MAX, GRID_MIN, SQUARE_MIN

RANDOM_SQUARE_MAX = 250

WORDS = (
    "boom",
    "lettuce",
    "substance",
    "bear",
    "discover",
    "savory",
    "party",
    "zippy",
    "potato",
    "gainful",
    "sharp",
    "move",
    "offbeat",
)

QUOTES = (
    "Turn your {} into wisdom.",
    "Wherever you go, go with all your {}.",
    "{} is a waking dream.",
    "If you {} it, you can {} it.",
    "Dream {} and dare to {}.",
)


def random_word(rng: random.Random | None = None, words: tuple[str, ...] = WORDS) -> str:
    return (rng or random).choice(words)


def random_dimension(rng: random.Random | None = None) -> int:
    return (rng or random).randint(GRID_MIN, GRID_MAX)


def random_square(rng: random.Random | None = None) -> int:
    return (rng or random).randint(SQUARE_MIN, RANDOM_SQUARE_MAX)


def inspirational_quote(rng: random.Random | None = None) -> str:
    """Pick a quote and fill every blank with its own random word."""

    quote = (rng or random).choice(QUOTES)
    blanks = quote.count("{}")
    return quote.format(*(random_word(rng) for _ in range(blanks)))


def random_properties(
    square: int | None,
    text: str | None,
    rng: random.Random | None = None,
) -> tuple[int, int, int, str]:
    """Random width/height, keeping the caller's square and text when given."""

    width = random_dimension(rng)
    height = random_dimension(rng)
    if square is None:
        square = random_square(rng)
    if not text:
        text = random_word(rng)
    return width, height, square, text


def random_image_urls(
    base_url: str,
    amount: int,
    text: str | None = None,
    rng: random.Random | None = None,
) -> list[str]:
    base = base_url.rstrip("/")
    urls: list[str] = []
    for _ in range(amount):
        params: dict[str, str | int] = {"square": random_square(rng)}
        if text is not None:
            params["text"] = text
        urls.append(f"{base}/img/{random_dimension(rng)}/{random_dimension(rng)}?{urlencode(params)}")
    return urls
