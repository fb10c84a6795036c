# src/px_order/application/schemas.py
"""Pydantic schemas for px_order requests and responses.

Order list cursor (orders are listed newest first):
  {"ts": "<created_at ISO>", "id": "<order_id>"} encoded as Base64 JSON.
"""
import base64
import binascii
import json
import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from src.px_common.datetime_utils import iso_or_none
from src.px_common.errors import InvalidPixelSelectionError
from src.px_common.money import amount_to_display
from src.px_order.domain.models import (
    Appearance,
    Order,
    PerPixelAppearance,
    PixelAppearance,
    UniformAppearance,
)

_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_MAX_LINK_LENGTH = 2048


def _check_color(v: str | None) -> str | None:
    if v is None:
        return v
    if not _COLOR_RE.match(v):
        raise ValueError("color must be a hex color like #ff0000")
    return v.lower()


def _check_link(v: str | None) -> str | None:
    if v is None or v == "":
        return None
    v = v.strip()
    if len(v) > _MAX_LINK_LENGTH:
        raise ValueError(f"link longer than {_MAX_LINK_LENGTH} characters")
    if not v.startswith(("http://", "https://")):
        raise ValueError("link must start with http:// or https://")
    return v


# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_order: Order) -> str:
    payload = {
        "ts": last_order.created_at.isoformat() if last_order.created_at else None,
        "id": last_order.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime | None, str | None]:
    """Decode cursor -> (created_at, order_id), or (None, None) if absent or malformed."""
    if not cursor:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(data["ts"]), str(data["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None, None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class IndividualPixelIn(BaseModel):
    id: int
    color: str
    link: str | None = None

    @field_validator("color")
    @classmethod
    def valid_color(cls, v: str) -> str | None:
        return _check_color(v)

    @field_validator("link")
    @classmethod
    def valid_link(cls, v: str | None) -> str | None:
        return _check_link(v)


class CreateOrderRequest(BaseModel):
    pixel_ids: list[int]
    mode: Literal["uniform", "individual"] = "uniform"
    color: str | None = None
    link: str | None = None
    individual: list[IndividualPixelIn] | None = None

    @field_validator("color")
    @classmethod
    def valid_color(cls, v: str | None) -> str | None:
        return _check_color(v)

    @field_validator("link")
    @classmethod
    def valid_link(cls, v: str | None) -> str | None:
        return _check_link(v)

    def to_appearance(self) -> Appearance:
        """Build the tagged appearance; raises InvalidPixelSelectionError on mode mismatch."""
        if self.mode == "uniform":
            if self.individual:
                raise InvalidPixelSelectionError("individual data given in uniform mode")
            if self.color is None:
                raise InvalidPixelSelectionError("color is required in uniform mode")
            return UniformAppearance(color=self.color, link=self.link)

        if self.color is not None or self.link is not None:
            raise InvalidPixelSelectionError("uniform color/link given in individual mode")
        if not self.individual:
            raise InvalidPixelSelectionError("individual mode needs per-pixel data")
        pixels: dict[int, PixelAppearance] = {}
        for item in self.individual:
            if item.id in pixels:
                raise InvalidPixelSelectionError(f"pixel {item.id} listed twice in individual data")
            pixels[item.id] = PixelAppearance(item.color, item.link)
        return PerPixelAppearance(pixels=pixels)


class AttachProofRequest(BaseModel):
    proof_url: str | None = Field(None, max_length=_MAX_LINK_LENGTH)
    note: str | None = Field(None, max_length=2000)

    @field_validator("proof_url")
    @classmethod
    def valid_url(cls, v: str | None) -> str | None:
        return _check_link(v)

    @model_validator(mode="after")
    def something_given(self) -> "AttachProofRequest":
        if self.proof_url is None and not self.note:
            raise ValueError("proof_url or note is required")
        return self


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ReservationResponse(BaseModel):
    order_id: str
    reference: str
    amount: int
    amount_display: str
    expires_at: str


class IndividualPixelOut(BaseModel):
    id: int
    color: str | None
    link: str | None


class OrderOut(BaseModel):
    id: str
    reference: str
    pixel_ids: list[int]
    amount: int
    amount_display: str
    status: str
    mode: str
    color: str | None
    link: str | None
    individual: list[IndividualPixelOut] | None
    payment_proof_url: str | None
    payment_note: str | None
    expires_at: str
    paid_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, o: Order) -> "OrderOut":
        appearance = o.appearance
        color = link = None
        individual = None
        if isinstance(appearance, PerPixelAppearance):
            individual = [
                IndividualPixelOut(id=pid, color=look.color, link=look.link)
                for pid, look in sorted(appearance.pixels.items())
            ]
        else:
            color, link = appearance.color, appearance.link
        return cls(
            id=o.id,
            reference=o.reference,
            pixel_ids=o.pixel_ids,
            amount=o.amount,
            amount_display=amount_to_display(o.amount),
            status=o.status,
            mode=appearance.mode.value,
            color=color,
            link=link,
            individual=individual,
            payment_proof_url=o.payment_proof_url,
            payment_note=o.payment_note,
            expires_at=o.expires_at.isoformat(),
            paid_at=iso_or_none(o.paid_at),
            created_at=iso_or_none(o.created_at),
        )


class OrderStatusOut(BaseModel):
    """What a buyer polling their own order may see."""

    reference: str
    status: str
    pixel_ids: list[int]
    amount: int
    expires_at: str
    paid_at: str | None
    proof_submitted: bool

    @classmethod
    def from_domain(cls, o: Order) -> "OrderStatusOut":
        return cls(
            reference=o.reference,
            status=o.status,
            pixel_ids=o.pixel_ids,
            amount=o.amount,
            expires_at=o.expires_at.isoformat(),
            paid_at=iso_or_none(o.paid_at),
            proof_submitted=bool(o.payment_proof_url or o.payment_note),
        )


class OrderListResponse(BaseModel):
    items: list[OrderOut]
    next_cursor: str | None
    has_more: bool


class RecentPurchaseOut(BaseModel):
    reference: str
    pixel_ids: list[int]
    link: str | None
    paid_at: str | None

    @classmethod
    def from_domain(cls, o: Order) -> "RecentPurchaseOut":
        link = o.appearance.link if isinstance(o.appearance, UniformAppearance) else None
        return cls(
            reference=o.reference,
            pixel_ids=o.pixel_ids,
            link=link,
            paid_at=iso_or_none(o.paid_at),
        )


class RecentPurchasesResponse(BaseModel):
    items: list[RecentPurchaseOut]


class SettleResponse(BaseModel):
    order_id: str
    reference: str
    status: str
    already_paid: bool
    pixels_sold: int


class SweepResponse(BaseModel):
    expired: int
    order_ids: list[str]


class AttachProofResponse(BaseModel):
    reference: str
    payment_proof_url: str | None
    payment_note: str | None


class CancelOrderResponse(BaseModel):
    order_id: str
    reference: str
    previous_status: str
    released_pixels: int
