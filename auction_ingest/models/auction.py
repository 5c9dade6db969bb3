"""
Auction snapshot record — one item's market state at one auction house at
one point in time.

Field widths mirror the storage columns:
  - ``realm_id``, ``auction_house_id``, ``interval``  → signed 16-bit
  - ``item_id``                                       → signed 64-bit
  - ``timestamp`` and all market statistics           → signed 32-bit

The model is frozen and range-checks every field, so an out-of-width value
can never reach the persistence layer even if a caller bypasses the row
mapper.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

INT_BOUNDS: dict[int, tuple[int, int]] = {
    bits: (-(2 ** (bits - 1)), 2 ** (bits - 1) - 1) for bits in (16, 32, 64)
}

FIELD_BITS: dict[str, int] = {
    "realm_id": 16,
    "auction_house_id": 16,
    "item_id": 64,
    "interval": 16,
    "timestamp": 32,
    "quantity": 32,
    "min": 32,
    "max": 32,
    "p05": 32,
    "p10": 32,
    "p25": 32,
    "p50": 32,
    "p75": 32,
    "p90": 32,
}

# Market statistic columns in CSV order (shared by both schemas).
STAT_FIELDS: tuple[str, ...] = (
    "quantity", "min", "max", "p05", "p10", "p25", "p50", "p75", "p90",
)


class AuctionRecord(BaseModel):
    """A single auction-house observation ready for persistence.

    Attributes:
        realm_id: Realm identifier.
        auction_house_id: Auction house (faction) identifier within the realm.
        item_id: WoW canonical item ID.
        interval: Sampling cadence / batch tag; ``1`` for live ingest.
        timestamp: UTC epoch seconds of the snapshot.
        quantity: Total units listed.
        min: Lowest unit price in copper.
        max: Highest unit price in copper.
        p05: 5th percentile unit price.
        p10: 10th percentile unit price.
        p25: 25th percentile unit price.
        p50: Median unit price.
        p75: 75th percentile unit price.
        p90: 90th percentile unit price.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    realm_id: int
    auction_house_id: int
    item_id: int
    interval: int
    timestamp: int
    quantity: int
    min: int
    max: int
    p05: int
    p10: int
    p25: int
    p50: int
    p75: int
    p90: int

    @field_validator(*FIELD_BITS)
    @classmethod
    def validate_width(cls, v: int, info) -> int:
        bits = FIELD_BITS[info.field_name]
        low, high = INT_BOUNDS[bits]
        if not low <= v <= high:
            raise ValueError(
                f"{info.field_name}={v} does not fit in a signed {bits}-bit integer."
            )
        return v

    @property
    def current_key(self) -> tuple[int, int, int]:
        """Identity of this record in the current-auctions snapshot."""
        return (self.realm_id, self.auction_house_id, self.item_id)

    def as_row(self) -> tuple[int, ...]:
        """Column values in storage order (see ``AUCTION_COLUMNS``)."""
        return tuple(getattr(self, name) for name in AUCTION_COLUMNS)


AUCTION_COLUMNS: tuple[str, ...] = (
    "realm_id", "auction_house_id", "item_id", "interval", "timestamp",
) + STAT_FIELDS
