# commission_engine/core/bot_filter.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from user_agents import parse as parse_ua

# Known bot user-agent fragments (lowercase substring match)
BOT_PATTERNS: tuple[str, ...] = (
    "bot",
    "crawler",
    "spider",
    "scraper",
    "curl",
    "wget",
    "python",
    "java",
    "headless",
    "phantom",
    "selenium",
    "puppet",
    "jmeter",
    "httpclient",
    "httptest",
    "test",
    "validator",
    "wilma",
    "requests",
    "urlfetch",
    "webtest",
    "axish",
    "fetch",
    "monitor",
    "shockwave",
    "flash",
    "client",
)

# Known crawler hosts (suffix match)
BOT_HOSTS: tuple[str, ...] = (
    "googlebot.com",
    "crawl.googlebot.com",
    "search.msn.com",
    "crawl.baidu.com",
    "crawl.yahoo.net",
)

# Referrer spam domains (substring match)
SPAM_REFERRERS: tuple[str, ...] = (
    "trafficmonetize.org",
    "traffic2cash.com",
    "traffic-c.com",
    "simple-share-buttons.com",
    "buttons-for-website.com",
    "theguardlan.com",
    "get-free-traffic-now.com",
    "free-social-buttons.com",
    "share-buttons.xyz",
)

# Two or more of these together => headless browser
HEADLESS_INDICATORS: tuple[str, ...] = (
    "headlesschrome",
    "headlessfirefox",
    "electron",
    "windows nt 6.1",
)

REASON_BOT_USER_AGENT = "bot_user_agent"
REASON_SPAM_REFERRER = "spam_referrer"
REASON_BOT_HOSTNAME = "bot_hostname"
REASON_HEADLESS_BROWSER = "headless_browser"
REASON_NONE = "none"


@dataclass(frozen=True)
class BotDetection:
    is_bot: bool
    is_spam: bool
    reason: str


def is_bot_user_agent(user_agent: str = "") -> bool:
    ua = (user_agent or "").lower()
    if not ua:
        return False
    return any(pattern in ua for pattern in BOT_PATTERNS)


def is_spam_referrer(referrer: str = "") -> bool:
    if not referrer:
        return False
    ref = referrer.lower()
    return any(spam in ref for spam in SPAM_REFERRERS)


def is_bot_host(hostname: str = "") -> bool:
    if not hostname:
        return False
    host = hostname.lower()
    return any(host.endswith(bot_host) for bot_host in BOT_HOSTS)


def count_headless_indicators(user_agent: str = "") -> int:
    ua = (user_agent or "").lower()
    return sum(1 for indicator in HEADLESS_INDICATORS if indicator in ua)


def detect_bot(
    *,
    user_agent: Optional[str] = "",
    referrer: Optional[str] = "",
    hostname: Optional[str] = "",
) -> BotDetection:
    """
    Deterministic click classifier.

    Every rule runs; reasons accumulate in rule order and are joined with
    commas for the audit trail ("none" when nothing fired). An empty user
    agent is not suspicious on its own.
    """
    user_agent = user_agent or ""
    referrer = referrer or ""
    hostname = hostname or ""

    reasons: list[str] = []

    if is_bot_user_agent(user_agent):
        reasons.append(REASON_BOT_USER_AGENT)

    if is_spam_referrer(referrer):
        reasons.append(REASON_SPAM_REFERRER)

    if is_bot_host(hostname):
        reasons.append(REASON_BOT_HOSTNAME)

    if count_headless_indicators(user_agent) >= 2:
        reasons.append(REASON_HEADLESS_BROWSER)

    return BotDetection(
        is_bot=bool(reasons),
        is_spam=REASON_SPAM_REFERRER in reasons,
        reason=",".join(reasons) or REASON_NONE,
    )


UNKNOWN = "unknown"
DEVICE_DESKTOP = "desktop"
DEVICE_MOBILE = "mobile"
DEVICE_TABLET = "tablet"


def _known(value: Optional[str]) -> str:
    # ua-parser reports unrecognised families as "Other"
    if not value or value == "Other":
        return UNKNOWN
    return value


def parse_user_agent(user_agent: Optional[str] = "") -> dict[str, str]:
    """Browser, OS and device breakdown stored with every click."""
    parsed = parse_ua(user_agent or "")

    if parsed.is_tablet:
        device_type = DEVICE_TABLET
    elif parsed.is_mobile:
        device_type = DEVICE_MOBILE
    else:
        device_type = DEVICE_DESKTOP

    return {
        "browser": _known(parsed.browser.family),
        "browser_version": parsed.browser.version_string or UNKNOWN,
        "os": _known(parsed.os.family),
        "os_version": parsed.os.version_string or UNKNOWN,
        "device_type": device_type,
        "device_model": _known(parsed.device.model),
        "device_vendor": _known(parsed.device.brand),
    }


def extract_ip(headers: Mapping[str, str], client_host: Optional[str] = None) -> str:
    # behind proxy/CDN: x-forwarded-for can carry a chain, first entry is the client
    forwarded = headers.get("x-forwarded-for") or headers.get("forwarded") or headers.get("x-real-ip")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return client_host or "unknown"


def extract_referrer(headers: Mapping[str, str]) -> str:
    return headers.get("referer") or headers.get("referrer") or ""
