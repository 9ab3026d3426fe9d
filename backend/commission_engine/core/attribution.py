# commission_engine/core/attribution.py
from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

ATTRIBUTION_KEYS = ("affiliate_id", "campaign_id", "click_id")


@dataclass(frozen=True)
class Attribution:
    affiliate_id: Optional[str] = None
    campaign_id: Optional[str] = None
    click_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.affiliate_id is None and self.campaign_id is None and self.click_id is None


def _clean_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def extract_attribution_info(metadata: Optional[Mapping[str, Any]]) -> Attribution:
    md = metadata or {}
    return Attribution(
        affiliate_id=_clean_id(md.get("affiliate_id")),
        campaign_id=_clean_id(md.get("campaign_id")),
        click_id=_clean_id(md.get("click_id")),
    )


def parse_client_reference(client_reference_id: Optional[str]) -> dict[str, Any]:
    """
    client_reference_id is free text on the provider side; only a JSON
    object carries attribution. Anything else yields {}.
    """
    if not client_reference_id:
        return {}
    try:
        data = json.loads(client_reference_id)
    except (TypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def resolve_attribution(
    metadata: Optional[Mapping[str, Any]],
    client_reference_id: Optional[str] = None,
) -> Attribution:
    """
    1) metadata keys affiliate_id / campaign_id / click_id
    2) client_reference_id JSON overrides each key it carries

    The result may be partially or fully empty; callers must handle
    affiliate_id is None.
    """
    attribution = extract_attribution_info(metadata)

    ref = parse_client_reference(client_reference_id)
    overrides = {}
    for key in ATTRIBUTION_KEYS:
        value = _clean_id(ref.get(key))
        if value is not None:
            overrides[key] = value

    return replace(attribution, **overrides) if overrides else attribution


def parse_uuid(value: Any) -> uuid.UUID | None:
    if not value:
        return None
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError):
        return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
