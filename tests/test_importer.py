"""
Unit tests for the Alto import pipeline.

Alto is served by an in-memory stub; no network access.
"""
from unittest.mock import patch

import pytest

from app.core.api_errors import AuthError, PropertyError, UpstreamFetchError
from app.sources.alto.importer import (
    parse_property_detail,
    parse_property_list,
    to_reference,
)
from app.sources.alto.xml_tree import XmlParseError

from alto_stub import (
    LIST_URL,
    TOKEN_URL,
    AltoStub,
    make_importer,
    property_list_xml,
    property_url,
    property_xml,
)


@pytest.mark.unit
class TestPropertyListDecoding:

    def test_parse_property_list(self):
        entries = parse_property_list(property_list_xml([
            ("1", property_url("1")),
            ("2", property_url("2")),
        ]))
        assert len(entries) == 2

    def test_empty_list(self):
        assert parse_property_list("<properties/>") == []

    def test_unexpected_root(self):
        assert parse_property_list("<error>bad</error>") == []

    def test_to_reference(self):
        entry = parse_property_list(property_list_xml([("7", property_url("7"))]))[0]

        ref = to_reference(entry)

        assert ref.prop_id == "7"
        assert ref.url == property_url("7")

    @pytest.mark.parametrize("prop_id,url", [(None, "http://x"), ("7", None), ("", "")])
    def test_to_reference_missing_fields(self, prop_id, url):
        entry = parse_property_list(property_list_xml([(prop_id, url)]))[0]
        assert to_reference(entry) is None

    def test_parse_property_detail_invalid_xml(self):
        with pytest.raises(PropertyError) as exc_info:
            parse_property_detail("<property>", "9")
        assert exc_info.value.prop_id == "9"

    def test_parse_property_detail_wrong_root(self):
        with pytest.raises(PropertyError):
            parse_property_detail("<branch><name>x</name></branch>", "9")


@pytest.mark.unit
class TestAltoImporterRun:

    @pytest.mark.asyncio
    async def test_end_to_end(self):
        url = property_url("1001")
        stub = AltoStub(
            list_xml=property_list_xml([("1001", url)]),
            details={url: (200, property_xml(prop_id="1001"))},
        )
        importer = make_importer(stub)

        summary = await importer.run(agent_email="agent@example.com")

        assert summary.total == 1
        assert summary.total_found == 1
        assert summary.skipped == 0
        assert summary.errors == 0
        listing = summary.properties[0]
        assert listing.property_type == "house"
        assert listing.images == ["http://x/img.jpg"]
        assert listing.bathrooms == 0
        assert listing.landlord_email == "agent@example.com"

    @pytest.mark.asyncio
    async def test_reference_missing_url_is_skipped_without_fetch(self):
        url = property_url("1001")
        stub = AltoStub(
            list_xml=property_list_xml([("1001", url), ("1002", None)]),
            details={url: (200, property_xml(prop_id="1001"))},
        )
        importer = make_importer(stub)

        summary = await importer.run()

        assert summary.total_found == 2
        assert summary.skipped >= 1
        assert summary.total == 1
        fetched = [str(r.url) for r in stub.requests]
        assert fetched == [TOKEN_URL, LIST_URL, url]

    @pytest.mark.asyncio
    async def test_classification_skips(self):
        small = property_url("1")
        offline = property_url("2")
        stub = AltoStub(
            list_xml=property_list_xml([("1", small), ("2", offline)]),
            details={
                small: (200, property_xml(prop_id="1", bedrooms="2", description="Flat")),
                offline: (200, property_xml(prop_id="2", web_status="1")),
            },
        )
        importer = make_importer(stub, strict=True)

        summary = await importer.run()

        assert summary.total == 0
        assert summary.skipped == 2
        assert summary.errors == 0

    @pytest.mark.asyncio
    async def test_strict_mode_changes_outcome(self):
        url = property_url("1")
        details = {url: (200, property_xml(
            prop_id="1", bedrooms="1", description="Flat to let in the centre",
        ))}
        list_xml = property_list_xml([("1", url)])

        permissive = await make_importer(AltoStub(list_xml=list_xml, details=details)).run()
        strict = await make_importer(
            AltoStub(list_xml=list_xml, details=details), strict=True
        ).run()

        assert permissive.total == 1
        assert strict.total == 0
        assert strict.skipped == 1

    @pytest.mark.asyncio
    async def test_detail_failures_are_counted(self):
        broken = property_url("1")
        missing = property_url("2")
        garbled = property_url("3")
        good = property_url("4")
        stub = AltoStub(
            list_xml=property_list_xml([
                ("1", broken), ("2", missing), ("3", garbled), ("4", good),
            ]),
            details={
                broken: (500, "oops"),
                garbled: (200, "<property><bedrooms>"),
                good: (200, property_xml(prop_id="4")),
            },
        )
        importer = make_importer(stub)

        summary = await importer.run()

        assert summary.errors == 3
        assert summary.total == 1
        assert summary.properties[0].external_id == "4"

    @pytest.mark.asyncio
    async def test_token_is_reused_across_runs(self):
        stub = AltoStub(list_xml=property_list_xml([]))
        importer = make_importer(stub)

        await importer.run()
        await importer.run()

        assert stub.count(TOKEN_URL) == 1
        assert stub.count(LIST_URL) == 2

    @pytest.mark.asyncio
    async def test_token_failure_aborts(self):
        stub = AltoStub(token_status=401)
        importer = make_importer(stub)

        with pytest.raises(AuthError):
            await importer.run()
        assert stub.count(LIST_URL) == 0

    @pytest.mark.asyncio
    async def test_list_failure_aborts(self):
        stub = AltoStub(list_status=503)
        importer = make_importer(stub)

        with pytest.raises(UpstreamFetchError):
            await importer.run()

    @pytest.mark.asyncio
    async def test_invalid_list_xml_aborts(self):
        stub = AltoStub(list_xml="<properties><property>")
        importer = make_importer(stub)

        with pytest.raises(XmlParseError):
            await importer.run()

    @pytest.mark.asyncio
    async def test_unparsable_url_is_counted_not_fatal(self):
        good = property_url("2")
        stub = AltoStub(
            list_xml=property_list_xml([("1", "http://[::1"), ("2", good)]),
            details={good: (200, property_xml(prop_id="2"))},
        )
        importer = make_importer(stub)

        summary = await importer.run()

        assert summary.total == 1
        assert summary.errors == 1
        assert summary.properties[0].external_id == "2"

    @pytest.mark.asyncio
    async def test_relative_url_is_an_error_without_fetch(self):
        good = property_url("2")
        stub = AltoStub(
            list_xml=property_list_xml([("1", "property/1"), ("2", good)]),
            details={good: (200, property_xml(prop_id="2"))},
        )
        importer = make_importer(stub)

        summary = await importer.run()

        assert summary.total == 1
        assert summary.errors == 1
        fetched = [str(r.url) for r in stub.requests]
        assert fetched == [TOKEN_URL, LIST_URL, good]

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_counted(self):
        url = property_url("1")
        stub = AltoStub(
            list_xml=property_list_xml([("1", url)]),
            details={url: (200, property_xml(prop_id="1"))},
        )
        importer = make_importer(stub)

        with patch(
            "app.sources.alto.importer.classify",
            side_effect=RuntimeError("boom"),
        ):
            summary = await importer.run()

        assert summary.total == 0
        assert summary.errors == 1

    @pytest.mark.asyncio
    async def test_external_id_falls_back_to_list_id(self):
        url = property_url("55")
        stub = AltoStub(
            list_xml=property_list_xml([("55", url)]),
            details={url: (200, property_xml(prop_id=""))},
        )
        importer = make_importer(stub)

        summary = await importer.run()

        assert summary.total == 1
        assert summary.properties[0].external_id == "55"
