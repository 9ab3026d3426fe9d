# tests/test_bot_filter.py
from __future__ import annotations

from commission_engine.core.bot_filter import (
    detect_bot,
    extract_ip,
    extract_referrer,
    is_bot_host,
    is_bot_user_agent,
    is_spam_referrer,
    parse_user_agent,
)

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def test_regular_browser_is_not_filtered():
    result = detect_bot(user_agent=CHROME_UA, referrer="https://blog.example.com/post", hostname="")
    assert result.is_bot is False
    assert result.is_spam is False
    assert result.reason == "none"


def test_empty_user_agent_is_not_suspicious_on_its_own():
    assert is_bot_user_agent("") is False
    assert detect_bot(user_agent="", referrer="", hostname="").is_bot is False


def test_known_crawler_user_agents():
    assert is_bot_user_agent("Googlebot/2.1 (+http://www.google.com/bot.html)")
    assert is_bot_user_agent("curl/8.4.0")
    assert is_bot_user_agent("python-requests/2.31")


def test_spam_referrer_sets_spam_flag():
    assert is_spam_referrer("https://free-social-buttons.com/x")
    result = detect_bot(user_agent=CHROME_UA, referrer="http://TRAFFIC2CASH.com/", hostname="")
    assert result.is_bot is True
    assert result.is_spam is True
    assert result.reason == "spam_referrer"


def test_bot_host_is_suffix_match():
    assert is_bot_host("crawl-66-249-66-1.googlebot.com")
    assert not is_bot_host("googlebot.com.evil.example")
    assert detect_bot(user_agent=CHROME_UA, hostname="msnbot.search.msn.com").reason == "bot_hostname"


def test_headless_needs_two_indicators():
    single = detect_bot(user_agent="Mozilla/5.0 (Windows NT 6.1; Win64; x64) Chrome/90.0")
    assert single.is_bot is False

    double = detect_bot(user_agent="Mozilla/5.0 (Windows NT 6.1; Win64; x64) Electron/20.0.0 Chrome/104.0")
    assert double.is_bot is True
    assert double.reason == "headless_browser"


def test_reasons_accumulate_in_rule_order():
    result = detect_bot(
        user_agent="Mozilla/5.0 (Windows NT 6.1) HeadlessChrome/90.0",
        referrer="https://share-buttons.xyz",
        hostname="crawl.yahoo.net",
    )
    assert result.reason == "bot_user_agent,spam_referrer,bot_hostname,headless_browser"
    assert result.is_spam is True


def test_extract_ip_prefers_forwarded_chain_head():
    assert extract_ip({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}, "10.0.0.2") == "203.0.113.7"
    assert extract_ip({"x-real-ip": "198.51.100.4"}) == "198.51.100.4"
    assert extract_ip({}, "127.0.0.1") == "127.0.0.1"
    assert extract_ip({}) == "unknown"


def test_extract_referrer_accepts_both_spellings():
    assert extract_referrer({"referer": "https://a.example"}) == "https://a.example"
    assert extract_referrer({"referrer": "https://b.example"}) == "https://b.example"
    assert extract_referrer({}) == ""


def test_parse_desktop_browser():
    device = parse_user_agent(CHROME_UA)
    assert device["browser"] == "Chrome"
    assert device["browser_version"].startswith("120")
    assert device["os"] == "Windows"
    assert device["device_type"] == "desktop"


def test_parse_phone_and_tablet():
    iphone = parse_user_agent(
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
    )
    assert iphone["os"] == "iOS"
    assert iphone["device_type"] == "mobile"
    assert iphone["device_vendor"] == "Apple"

    ipad = parse_user_agent(
        "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
    )
    assert ipad["device_type"] == "tablet"


def test_parse_empty_user_agent_is_unknown():
    device = parse_user_agent("")
    assert device["browser"] == "unknown"
    assert device["os"] == "unknown"
    assert device["device_model"] == "unknown"
    assert device["device_type"] == "desktop"
