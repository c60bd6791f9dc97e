"""Image request parameter validation."""

from __future__ import annotations

import math

from fastapi import status
from pydantic import BaseModel, ConfigDict, Field

GRID_MIN = 1
GRID_MAX = 2000
SQUARE_MIN = 1
AMOUNT_MIN = 2
AMOUNT_MAX = 2000


class ImageRequestValidationError(ValueError):
    """Structured validation error rendered as ``{"error", "message"}``."""

    def __init__(self, error: str, message: str, *, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code

    def to_json(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


class ImageRequest(BaseModel):
    """Validated parameters handed to the renderer and the stats recorder."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(ge=GRID_MIN, le=GRID_MAX)
    height: int = Field(ge=GRID_MIN, le=GRID_MAX)
    square: int | None = Field(default=None, ge=SQUARE_MIN)
    text: str | None = None


def _parse_number(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def validate_dimensions(width: str | None, height: str | None) -> tuple[int, int]:
    """Validate width/height path params; a missing height makes a square image."""

    if height is None:
        height = width

    parsed_width = _parse_number(width)
    parsed_height = _parse_number(height)
    if parsed_width is None or parsed_height is None:
        raise ImageRequestValidationError(
            "Height & Width",
            "The width & height must be set to create a image.",
        )

    if not parsed_width.is_integer() or not parsed_height.is_integer():
        raise ImageRequestValidationError(
            "Height & Width",
            "The height & width must be integers (no decimal places).",
        )

    if parsed_width > GRID_MAX or parsed_height > GRID_MAX:
        raise ImageRequestValidationError(
            "Height & Width",
            f"The height & width must equal to or less than {GRID_MAX}.",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    if parsed_width < GRID_MIN or parsed_height < GRID_MIN:
        raise ImageRequestValidationError(
            "Height & Width",
            f"The height & width must equal to or greater than {GRID_MIN}.",
        )

    return int(parsed_width), int(parsed_height)


def validate_square(square: str | None) -> int | None:
    if square is None:
        return None

    parsed = _parse_number(square)
    if parsed is None:
        raise ImageRequestValidationError("Square", "The square query must be a integer if set.")
    if parsed < SQUARE_MIN:
        raise ImageRequestValidationError(
            "Square", "The square query must be a positive integer if set."
        )
    if not parsed.is_integer():
        raise ImageRequestValidationError(
            "Square", "The square must be an integer (no decimal places)."
        )
    return int(parsed)


def validate_amount(amount: str | None, square: str | None) -> int | None:
    """Validate the bulk ``amount`` query, which cannot be combined with square."""

    if amount is None:
        return None

    parsed = _parse_number(amount)
    if parsed is not None and (parsed < AMOUNT_MIN or parsed > AMOUNT_MAX):
        raise ImageRequestValidationError(
            "Amount",
            f"Amount query cannot be less {AMOUNT_MIN} or greater than {AMOUNT_MAX}",
        )
    if parsed is None or not parsed.is_integer():
        raise ImageRequestValidationError(
            "Amount", "The amount must be an integer (no decimal places)."
        )
    if square is not None:
        raise ImageRequestValidationError(
            "Square", "The square query cannot be combined with the amount query."
        )
    return int(parsed)


def validate_image_request(
    width: str | None,
    height: str | None,
    *,
    square: str | None = None,
    text: str | None = None,
) -> ImageRequest:
    parsed_width, parsed_height = validate_dimensions(width, height)
    return ImageRequest(
        width=parsed_width,
        height=parsed_height,
        square=validate_square(square),
        text=text,
    )
