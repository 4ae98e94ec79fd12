"""
Alto property record -> NormalizedListing.

Mapping is best-effort: any failure while extracting one property turns
into MappingResult.failed() so a single malformed record never aborts the
import.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.sources.alto.classifier import parse_int
from app.sources.alto.models import NormalizedListing
from app.sources.alto.xml_tree import as_list, get_field, get_text

logger = logging.getLogger(__name__)

# Alto file type codes
FILE_TYPE_IMAGE = "0"
FILE_TYPE_FLOORPLAN = "2"
FILE_TYPE_VIRTUAL_TOUR = "3"

# rm_type codes: 1-6 are houses (terraced, detached, ...), 9 is a studio
HOUSE_RM_TYPES = range(1, 7)
STUDIO_RM_TYPE = 9


@dataclass
class MappingResult:
    listing: Optional[NormalizedListing] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.listing is not None

    @classmethod
    def success(cls, listing: NormalizedListing) -> "MappingResult":
        return cls(listing=listing)

    @classmethod
    def failed(cls, reason: str) -> "MappingResult":
        return cls(error=reason)


def parse_float(value: Optional[str]) -> Optional[float]:
    """Parse a float; None for missing, unparsable or zero values."""
    if value is None:
        return None
    try:
        number = float(str(value).replace(",", "").strip())
    except ValueError:
        return None
    if number != number or number == 0:  # NaN or zero
        return None
    return number


def map_property_type(rm_type: Optional[str]) -> str:
    """Map Alto's numeric rm_type to house / studio / flat."""
    code = parse_float(rm_type) or 0.0
    if HOUSE_RM_TYPES[0] <= code <= HOUSE_RM_TYPES[-1]:
        return "house"
    if code == STUDIO_RM_TYPE:
        return "studio"
    return "flat"


def record_list(record: Any, key: str) -> List[Any]:
    """Return every occurrence of key directly under the record."""
    if isinstance(record, list):
        record = record[0] if record else None
    if not isinstance(record, dict):
        return []
    return as_list(record.get(key))


def _file_entries(record: Any) -> List[Dict[str, Any]]:
    # <files> may hold the file fields directly or wrap several <file> children
    entries = []
    for item in record_list(record, "files"):
        if isinstance(item, dict) and "file" in item:
            entries.extend(f for f in as_list(item["file"]) if isinstance(f, dict))
        elif isinstance(item, dict):
            entries.append(item)
    return entries


def classify_files(record: Any) -> Dict[str, List[str]]:
    """Split attachments into images, floorplans and virtual tours."""
    groups: Dict[str, List[str]] = {
        FILE_TYPE_IMAGE: [],
        FILE_TYPE_FLOORPLAN: [],
        FILE_TYPE_VIRTUAL_TOUR: [],
    }
    for entry in _file_entries(record):
        url = get_text(entry, "url")
        file_type = get_text(entry, "type")
        if url and file_type in groups:
            groups[file_type].append(url)
    return {
        "images": groups[FILE_TYPE_IMAGE],
        "floorplans": groups[FILE_TYPE_FLOORPLAN],
        "virtual_tours": groups[FILE_TYPE_VIRTUAL_TOUR],
    }


def extract_amenities(record: Any) -> List[str]:
    """Collect bullet-point texts from every <bullets> block."""
    amenities = []
    for block in record_list(record, "bullets"):
        if isinstance(block, dict):
            for bullet in as_list(block.get("bullet")):
                text = get_text({"bullet": bullet}, "bullet")
                if text:
                    amenities.append(text)
        elif block:
            amenities.append(str(block))
    return amenities


def _build_listing(
    record: Any, agent_email: Optional[str], prop_id: Optional[str]
) -> NormalizedListing:
    address = get_field(record, "address") or {}
    display = get_text(address, "display")
    street = get_text(address, "street")
    files = classify_files(record)

    return NormalizedListing(
        title=display or street or "Property",
        description=get_text(record, "description") or "",
        property_type=map_property_type(get_text(record, "rm_type")),
        street_address=street or "",
        address=display or "",
        city=get_text(address, "town") or "",
        postcode=get_text(address, "postcode") or "",
        latitude=parse_float(get_text(record, "latitude")),
        longitude=parse_float(get_text(record, "longitude")),
        bedrooms=max(parse_int(get_text(record, "bedrooms")), 0),
        bathrooms=max(parse_int(get_text(record, "bathrooms")), 0),
        price_monthly=parse_float(get_text(record, "price")),
        deposit_amount=parse_float(get_text(record, "deposit")),
        available_from=get_text(record, "available") or "",
        furnished=get_text(record, "furnished") == "1",
        bills_included=False,
        epc_rating=get_text(record, "epcrating_current"),
        council_tax_band=get_text(record, "counciltaxband"),
        images=files["images"] or None,
        floorplans=files["floorplans"] or None,
        virtual_tours=files["virtual_tours"] or None,
        amenities=extract_amenities(record) or None,
        landlord_email=agent_email or None,
        external_id=get_text(record, "prop_id") or prop_id,
    )


def map_property(
    record: Any,
    agent_email: Optional[str] = None,
    prop_id: Optional[str] = None,
) -> MappingResult:
    """
    Transform one decoded Alto property into a NormalizedListing.

    Args:
        record: Decoded <property> node
        agent_email: Caller-supplied contact email
        prop_id: Id from the property list, used when the record has none

    Returns:
        MappingResult with the listing, or the failure reason
    """
    try:
        return MappingResult.success(_build_listing(record, agent_email, prop_id))
    except Exception as e:
        ident = prop_id or get_text(record, "prop_id")
        logger.warning(f"Failed to map property {ident}: {e}")
        return MappingResult.failed(str(e))
