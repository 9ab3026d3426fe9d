# tests/test_affiliates_api.py
from __future__ import annotations

from decimal import Decimal

import pytest

TIERS = [{"min_revenue": 0, "rate": 0.10}, {"min_revenue": 10000, "rate": 0.15}]


def checkout(payment_intent: str, amount_total: int, affiliate_id: str, campaign_id: str | None = None) -> dict:
    metadata = {"affiliate_id": affiliate_id}
    if campaign_id:
        metadata["campaign_id"] = campaign_id
    return {
        "id": f"cs_{payment_intent}",
        "payment_intent": payment_intent,
        "amount_total": amount_total,
        "currency": "inr",
        "payment_status": "paid",
        "metadata": metadata,
    }


@pytest.mark.asyncio
async def test_affiliate_reads_own_summary(client, send_event, auth_headers, create_affiliate):
    affiliate = await create_affiliate(commission_tiers=TIERS, total_earnings="12000.00", pending_payouts="0.00")

    await send_event("checkout.session.completed", checkout("pi_s1", 100000, affiliate.user_id))
    await send_event("charge.refunded", {"id": "ch_s1", "payment_intent": "pi_s1", "amount_refunded": 50000, "currency": "inr"})

    r = await client.get(f"/api/v1/affiliates/{affiliate.user_id}/summary", headers=auth_headers(affiliate.user_id))
    assert r.status_code == 200
    body = r.json()

    # tier 0.15 applies once earnings pass 10000
    assert Decimal(body["current_rate"]) == Decimal("0.15")
    assert body["conversions"] == 1
    assert Decimal(body["gross_revenue"]) == Decimal("1000.00")
    assert Decimal(body["commission_earned"]) == Decimal("150.00")
    assert Decimal(body["commission_reversed"]) == Decimal("75.00")
    assert Decimal(body["profile"]["pending_payouts"]) == Decimal("75.00")
    assert [rev["transaction_id"] for rev in body["revenues"]] == ["pi_s1"]
    assert body["revenues"][0]["status"] == "partially_refunded"
    assert body["payouts"] == []


@pytest.mark.asyncio
async def test_affiliate_cannot_read_someone_elses_summary(client, auth_headers, create_affiliate):
    a = await create_affiliate()
    b = await create_affiliate()

    r = await client.get(f"/api/v1/affiliates/{a.user_id}/summary", headers=auth_headers(b.user_id))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_summary_for_unknown_affiliate(client, admin_headers):
    r = await client.get("/api/v1/affiliates/aff_nobody/summary", headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client, create_affiliate):
    affiliate = await create_affiliate()
    r = await client.get(
        f"/api/v1/affiliates/{affiliate.user_id}/summary",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_revenue_listing_round_trip(client, send_event, admin_headers, create_affiliate, create_campaign):
    affiliate = await create_affiliate()
    other = await create_affiliate()
    campaign = await create_campaign({"type": "RevShare", "percentage": 25})

    await send_event(
        "checkout.session.completed",
        checkout("pi_r1", 40000, affiliate.user_id, str(campaign.id)) | {"client_reference_id": '{"click_id": "click_r1"}'},
    )
    await send_event("checkout.session.completed", checkout("pi_r2", 10000, other.user_id))

    r = await client.get("/api/v1/revenue", params={"affiliate_id": affiliate.user_id}, headers=admin_headers)
    assert r.status_code == 200
    page = r.json()
    assert page["total"] == 1
    assert page["limit"] == 50
    assert page["offset"] == 0

    item = page["items"][0]
    assert item["transaction_id"] == "pi_r1"
    assert item["status"] == "succeeded"
    assert item["affiliate_id"] == affiliate.user_id
    assert item["campaign_id"] == str(campaign.id)
    assert item["click_id"] == "click_r1"
    assert Decimal(item["amount"]) == Decimal("400.00")
    assert Decimal(item["commission_amount"]) == Decimal("100.00")
    assert item["commission_basis"] == "campaign_revshare"
    assert item["source"] == "stripe"

    r = await client.get("/api/v1/revenue", headers=admin_headers)
    assert r.json()["total"] == 2


@pytest.mark.asyncio
async def test_revenue_listing_requires_admin(client, auth_headers):
    r = await client.get("/api/v1/revenue", headers=auth_headers("aff_1"))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
