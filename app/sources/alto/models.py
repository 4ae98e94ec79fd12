"""
Pydantic schemas for the Alto import.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_serializer


# Keys dropped from the JSON output when they hold no value
OMIT_WHEN_EMPTY = ("images", "floorplans", "virtual_tours", "amenities", "landlord_email")


class PropertyReference(BaseModel):
    """One entry of the branch property list."""
    prop_id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class NormalizedListing(BaseModel):
    """Vendor-independent listing returned to callers."""
    title: str
    description: str = ""
    property_type: Literal["house", "flat", "studio"]
    street_address: str = ""
    address: str = ""
    city: str = ""
    postcode: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)
    price_monthly: Optional[float] = None
    deposit_amount: Optional[float] = None
    available_from: str = ""
    furnished: bool = False
    bills_included: bool = False
    epc_rating: Optional[str] = None
    council_tax_band: Optional[str] = None
    images: Optional[List[str]] = None
    floorplans: Optional[List[str]] = None
    virtual_tours: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    landlord_email: Optional[str] = None
    landlord_account_type: Literal["agent"] = "agent"
    status: Literal["available"] = "available"
    external_id: Optional[str] = None

    @model_serializer(mode="wrap")
    def omit_empty_fields(self, handler) -> Dict[str, Any]:
        data = handler(self)
        for key in OMIT_WHEN_EMPTY:
            if not data.get(key):
                data.pop(key, None)
        return data


class ImportRequest(BaseModel):
    """Request body for POST /import."""
    agent_email: Optional[str] = Field(
        None, description="Contact email set as landlord_email on every listing"
    )


class ImportResponse(BaseModel):
    """Successful POST /import response."""
    success: bool = True
    properties: List[NormalizedListing]
    total: int
    total_found: int
    skipped: int
    errors: int
    proxy_ip: str
    timestamp: str


@dataclass
class ImportSummary:
    """Counters and listings produced by one import run."""
    properties: List[NormalizedListing] = field(default_factory=list)
    total_found: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return len(self.properties)
