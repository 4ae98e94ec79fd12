"""
Alto import pipeline.

token -> property list -> for each reference (sequentially):
fetch detail -> decode -> classify -> map.

Token and list failures abort the run. Anything that goes wrong with one
property is logged and counted under skipped or errors.
"""

import logging
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from app.core.api_errors import APIError, PropertyError
from app.sources.alto.classifier import classify
from app.sources.alto.client import AltoClient
from app.sources.alto.mapper import map_property
from app.sources.alto.models import ImportSummary, PropertyReference
from app.sources.alto.token_manager import TokenManager
from app.sources.alto.xml_tree import XmlParseError, get_field, get_text, parse_xml

logger = logging.getLogger(__name__)


def parse_property_list(xml_text: str) -> List[Any]:
    """Return the raw <property> entries of a branch property list."""
    tree = parse_xml(xml_text)
    properties = tree.get("properties")
    if properties is None:
        return []
    root = properties[0]
    if not isinstance(root, dict):
        return []
    return list(root.get("property", []))


def to_reference(entry: Any) -> Optional[PropertyReference]:
    """Build a PropertyReference, or None when prop_id or url is missing."""
    prop_id = get_text(entry, "prop_id")
    url = get_text(entry, "url")
    if not prop_id or not url:
        return None
    try:
        return PropertyReference(prop_id=prop_id, url=url)
    except ValidationError:
        return None


def parse_property_detail(xml_text: str, prop_id: str) -> Any:
    """Decode one property document and return its <property> node."""
    try:
        tree = parse_xml(xml_text)
    except XmlParseError as e:
        raise PropertyError(
            f"Invalid property XML ({e})", source="alto", prop_id=prop_id
        ) from e
    record = get_field(tree, "property")
    if not isinstance(record, dict):
        raise PropertyError("No <property> element", source="alto", prop_id=prop_id)
    return record


class AltoImporter:
    """
    Runs one import against a branch.

    Args:
        client: AltoClient for list/detail calls
        token_manager: Shared token cache
        strict_student_match: Ignore generic "letting" wording when classifying
    """

    def __init__(
        self,
        client: AltoClient,
        token_manager: TokenManager,
        strict_student_match: bool = False,
    ):
        self.client = client
        self.token_manager = token_manager
        self.strict_student_match = strict_student_match

    async def _process_reference(
        self, reference: PropertyReference, token: str, agent_email: Optional[str]
    ) -> Tuple[str, Any]:
        """
        Fetch, classify and map one property.

        Returns:
            ("ok", listing), ("skipped", reason) or ("error", reason)
        """
        try:
            xml_text = await self.client.fetch_property(reference.url, token)
            record = parse_property_detail(xml_text, reference.prop_id)

            reason = classify(record, strict=self.strict_student_match)
            if reason:
                logger.debug(f"Skipping {reference.prop_id}: {reason}")
                return "skipped", reason

            result = map_property(record, agent_email, prop_id=reference.prop_id)
        except APIError as e:
            logger.warning(f"Error processing {reference.prop_id}: {e}")
            return "error", str(e)
        except Exception as e:
            logger.warning(
                f"Unexpected error processing {reference.prop_id}: {e}", exc_info=True
            )
            return "error", str(e)

        if not result.ok:
            return "error", result.error
        return "ok", result.listing

    async def run(self, agent_email: Optional[str] = None) -> ImportSummary:
        """
        Import every student-letting candidate of the configured branch.

        Raises:
            AuthError: If no token can be obtained
            APIError: If the property list cannot be fetched
            XmlParseError: If the property list is not valid XML
        """
        token = await self.token_manager.get_token()

        logger.info(f"Fetching properties for branch {self.client.branch_id}")
        list_xml = await self.client.list_properties(token)
        entries = parse_property_list(list_xml)
        logger.info(f"Found {len(entries)} properties")

        summary = ImportSummary(total_found=len(entries))

        for entry in entries:
            reference = to_reference(entry)
            if reference is None:
                summary.skipped += 1
                continue

            outcome, value = await self._process_reference(reference, token, agent_email)
            if outcome == "ok":
                summary.properties.append(value)
            elif outcome == "skipped":
                summary.skipped += 1
            else:
                summary.errors += 1

        logger.info(
            f"Import complete: processed={summary.total}, "
            f"skipped={summary.skipped}, errors={summary.errors}"
        )
        return summary
