# tests/test_attribution.py
from __future__ import annotations

import json

from commission_engine.core.attribution import (
    extract_attribution_info,
    parse_client_reference,
    parse_uuid,
    resolve_attribution,
)


def test_metadata_only():
    a = resolve_attribution({"affiliate_id": "aff_1", "campaign_id": "camp_1", "click_id": "click_1"})
    assert (a.affiliate_id, a.campaign_id, a.click_id) == ("aff_1", "camp_1", "click_1")


def test_client_reference_overrides_each_key_it_carries():
    ref = json.dumps({"affiliate_id": "aff_ref", "click_id": "click_ref"})
    a = resolve_attribution({"affiliate_id": "aff_md", "campaign_id": "camp_md"}, ref)
    assert a.affiliate_id == "aff_ref"
    assert a.campaign_id == "camp_md"
    assert a.click_id == "click_ref"


def test_non_json_client_reference_is_ignored():
    assert parse_client_reference("order-1234") == {}
    assert parse_client_reference(json.dumps(["not", "a", "dict"])) == {}

    a = resolve_attribution({"affiliate_id": "aff_md"}, "order-1234")
    assert a.affiliate_id == "aff_md"


def test_blank_values_count_as_missing():
    a = extract_attribution_info({"affiliate_id": "  ", "campaign_id": ""})
    assert a.is_empty

    ref = json.dumps({"affiliate_id": ""})
    assert resolve_attribution({"affiliate_id": "aff_md"}, ref).affiliate_id == "aff_md"


def test_nothing_resolvable():
    assert resolve_attribution(None, None).is_empty


def test_parse_uuid():
    assert parse_uuid("not-a-uuid") is None
    assert parse_uuid(None) is None
    assert str(parse_uuid("0b6c3f4e-5f8e-4f5b-9d6e-2b1a3c4d5e6f")) == "0b6c3f4e-5f8e-4f5b-9d6e-2b1a3c4d5e6f"
