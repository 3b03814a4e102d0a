"""Feather Code microservice -- FastAPI application.

Endpoints:
    POST /encode        -- Encode text to module widths and code values
    POST /encode/svg    -- Encode text and render a stylized SVG
    POST /encode/png    -- Encode text and render a stylized PNG
    POST /decode        -- Decode measured module widths to text
    GET  /health        -- Health check
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .decoder import WIDTH_TOLERANCE, DecodeConfig, decode
from .encoder import QUIET_ZONE, EncodeConfig, encode_message, flatten
from .errors import DecodeError
from .optimizer import MAX_LENGTH
from .renderer import (
    BOUNDARY_TOLERANCE,
    DEFAULT_BAR_COLOR,
    DEFAULT_SPACE_COLOR,
    StyleConfig,
    render,
    render_png,
    render_svg,
)

structlog.configure(
    processors=[
        structlog.dev.ConsoleRenderer(),
    ],
)

logger = structlog.get_logger(__name__)

SERVICE_NAME = "feather-code"
VERSION = "0.1.0"

app = FastAPI(
    title=SERVICE_NAME,
    description="Code128 encoder/decoder with stylized, scanner-safe rendering",
    version=VERSION,
)


# --------------------------------------------------------------------------
# Request / Response models
# --------------------------------------------------------------------------


class EncodeRequest(BaseModel):
    """Request body for /encode."""

    text: str = Field(
        ...,
        description="ASCII text to encode",
        examples=["PJJ123C", "Hello World"],
    )
    quiet_zone: int = Field(
        default=QUIET_ZONE,
        ge=QUIET_ZONE,
        le=100,
        description="Quiet zone on each side, in modules",
    )
    max_length: int = Field(
        default=MAX_LENGTH,
        ge=0,
        le=1000,
        description="Maximum accepted number of characters",
    )
    gs1: bool = Field(
        default=False,
        description="Emit FNC1 after the Start symbol (GS1-128)",
    )


class RenderRequest(EncodeRequest):
    """Request body for /encode/svg and /encode/png."""

    bar_color: str = Field(default=DEFAULT_BAR_COLOR, description="Bar fill colour")
    space_color: str = Field(default=DEFAULT_SPACE_COLOR, description="Background colour")
    bar_profile: str = Field(
        default="flat",
        description="Bar profile name",
        examples=["flat", "tapered", "feathered", "quill"],
    )
    corner: str = Field(default="square", examples=["square", "rounded"])
    corner_radius: float = Field(default=0.0, ge=0, description="Corner radius in modules")
    module_px: float = Field(default=4.0, gt=0, le=32, description="Pixels per module")
    bar_height: float = Field(default=160.0, gt=0, le=2048)
    decoration_margin: float = Field(default=16.0, ge=0)
    feather_depth: float = Field(default=0.08, ge=0, description="Barb depth in modules")
    feather_period: float = Field(default=12.0, gt=0)
    ornament: str | None = Field(
        default=None,
        description="Optional motif above the bars",
        examples=["feather", "leaf", "diamond"],
    )
    ornament_color: str | None = Field(default=None)
    tolerance: float = Field(
        default=BOUNDARY_TOLERANCE,
        gt=0,
        lt=0.5,
        description="Maximum boundary displacement in modules",
    )

    def style(self) -> StyleConfig:
        return StyleConfig(
            bar_color=self.bar_color,
            space_color=self.space_color,
            bar_profile=self.bar_profile,
            corner=self.corner,
            corner_radius=self.corner_radius,
            module_px=self.module_px,
            bar_height=self.bar_height,
            decoration_margin=self.decoration_margin,
            feather_depth=self.feather_depth,
            feather_period=self.feather_period,
            ornament=self.ornament,
            ornament_color=self.ornament_color,
            tolerance=self.tolerance,
        )


class EncodeResponse(BaseModel):
    """Response body for /encode."""

    widths: list[int] = Field(
        description="External form: quiet zone, bar, space, ..., bar, quiet zone",
    )
    symbols: list[int] = Field(description="Code values: Start, data, checksum, Stop")
    start_set: str = Field(description="Code set selected by the Start symbol")
    module_count: int = Field(description="Modules between the quiet zones")


class DecodeRequest(BaseModel):
    """Request body for /decode."""

    widths: list[float] = Field(
        ...,
        description="Measured widths: quiet zone, bar, space, ..., bar, quiet zone",
    )
    width_tolerance: float = Field(default=WIDTH_TOLERANCE, gt=0, lt=0.5)
    min_quiet_zone: float = Field(default=QUIET_ZONE, ge=0)
    module_width: float = Field(default=1.0, gt=0)


class DecodeResponse(BaseModel):
    """Response body for /decode."""

    text: str | None = Field(
        description="Decoded text, or null if decode failed",
    )
    error: str | None = Field(
        default=None,
        description="Error message if decode failed",
    )
    error_type: str | None = Field(
        default=None,
        description="Failure kind, e.g. ChecksumMismatch or MissingQuietZone",
    )
    position: int | None = Field(
        default=None,
        description="Index of the offending width, if known",
    )


class HealthResponse(BaseModel):
    """Response body for /health."""

    status: str
    service: str
    version: str


def _encode(request: EncodeRequest):
    config = EncodeConfig(
        quiet_zone=request.quiet_zone,
        max_length=request.max_length,
        gs1=request.gs1,
    )
    message = encode_message(request.text, config)
    return message, flatten(message, config.quiet_zone)


# --------------------------------------------------------------------------
# Endpoints
# --------------------------------------------------------------------------


@app.post(
    "/encode",
    response_model=EncodeResponse,
    responses={422: {"description": "Invalid input"}},
)
async def encode_endpoint(request: EncodeRequest) -> EncodeResponse:
    """Encode text into module widths."""
    try:
        message, sequence = _encode(request)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return EncodeResponse(
        widths=[int(w) for w in sequence.to_list()],
        symbols=list(message.symbols),
        start_set=message.start.value,
        module_count=message.module_count,
    )


@app.post(
    "/encode/svg",
    response_class=Response,
    responses={
        200: {
            "content": {"image/svg+xml": {}},
            "description": "Stylized barcode as SVG",
        },
        422: {"description": "Invalid input or unreadable style"},
    },
)
async def encode_svg_endpoint(request: RenderRequest) -> Response:
    """Encode text and render it as SVG."""
    try:
        _, sequence = _encode(request)
        svg_content = render_svg(render(sequence, request.style()))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return Response(content=svg_content, media_type="image/svg+xml")


@app.post(
    "/encode/png",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "Stylized barcode as PNG"},
        422: {"description": "Invalid input or unreadable style"},
    },
)
async def encode_png_endpoint(request: RenderRequest) -> Response:
    """Encode text and render it as PNG."""
    try:
        _, sequence = _encode(request)
        output = render(sequence, request.style())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        png_bytes = render_png(output)
    except Exception as e:
        logger.error("encode_png_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Rendering failed")

    return Response(content=png_bytes, media_type="image/png")


@app.post("/decode", response_model=DecodeResponse)
async def decode_endpoint(request: DecodeRequest) -> DecodeResponse:
    """Decode measured widths back to text."""
    try:
        config = DecodeConfig(
            width_tolerance=request.width_tolerance,
            min_quiet_zone=request.min_quiet_zone,
            module_width=request.module_width,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        text = decode(request.widths, config)
    except DecodeError as e:
        return DecodeResponse(
            text=None,
            error=str(e),
            error_type=type(e).__name__,
            position=e.position,
        )

    return DecodeResponse(text=text)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for Docker and load balancer probes."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=VERSION,
    )
