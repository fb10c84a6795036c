"""Pydantic schemas for px_pixel API responses."""

from typing import Literal

from pydantic import BaseModel

from src.px_pixel.domain.models import TOTAL_PIXELS, Pixel, PixelStats


class PixelOut(BaseModel):
    id: int
    x: int
    y: int
    status: str
    color: str | None
    link: str | None

    @classmethod
    def from_domain(cls, p: Pixel) -> "PixelOut":
        return cls(id=p.id, x=p.x, y=p.y, status=p.status, color=p.color, link=p.link)


class PixelMapResponse(BaseModel):
    """Only non-free pixels are listed; everything absent is free."""

    pixels: list[PixelOut]
    count: int


class PixelStatsResponse(BaseModel):
    total: int = TOTAL_PIXELS
    free: int
    reserved: int
    sold: int

    @classmethod
    def from_domain(cls, s: PixelStats) -> "PixelStatsResponse":
        return cls(free=s.free, reserved=s.reserved, sold=s.sold)


ClaimedStatus = Literal["reserved", "sold"]
