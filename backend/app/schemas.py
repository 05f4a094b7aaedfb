"""
Palette Extractor API Schemas
Pydantic models for color extraction request/response validation.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from app.services.colors.errors import InvalidRequestError
from app.services.colors.extract_api import PaletteRequest


class ExtractColorsRequest(BaseModel):
    """JSON body of the extraction endpoint."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    image_url: Optional[str] = Field(
        None,
        description="Absolute URL of a publicly fetchable image"
    )
    num_colors: Optional[StrictInt] = Field(
        None,
        alias="numColors",
        description="Maximum number of colors to return (default 10)"
    )
    color_format: str = Field(
        "rgb",
        pattern="^(rgb|hex)$",
        description="Output format: 'rgb' for rgb(r,g,b) or 'hex' for #RRGGBB"
    )
    include_swatch: bool = Field(
        False,
        description="Include a base64 PNG strip of the palette"
    )

    def to_palette_request(self, cancel=None) -> PaletteRequest:
        return PaletteRequest(
            image_url=self.image_url,
            num_colors=self.num_colors,
            color_format=self.color_format,
            include_swatch=self.include_swatch,
            cancel=cancel,
        )

    @classmethod
    def parse_payload(cls, payload) -> "ExtractColorsRequest":
        """
        Validate a decoded JSON body.

        Raises:
            InvalidRequestError: If the body is not an object or a field is malformed
        """
        if not isinstance(payload, dict):
            raise InvalidRequestError("Request body must be a JSON object.")
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise InvalidRequestError(f"Invalid field '{field}': {first.get('msg')}") from e


class ExtractColorsResponse(BaseModel):
    """Successful extraction: colors ordered most to least frequent."""
    colors: List[str] = Field(
        ...,
        description="Palette colors, e.g. ['rgb(255,0,0)', ...]"
    )
    swatch_png_b64: Optional[str] = Field(
        None,
        description="Base64-encoded PNG strip, present only when requested"
    )


class ErrorResponse(BaseModel):
    """Error response."""
    error: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("palette-extractor", description="Service name")
