"""
User-Agent Classification

Coarse device / OS / browser buckets for click analytics. Each table is an
ordered list of (label, substrings); the first label with a substring found
in the lower-cased User-Agent wins.

Order matters: Android UAs also contain "linux", iOS UAs contain "mac os x",
Edge and Opera UAs contain "chrome", and Chrome UAs contain "safari".
"""

from typing import Optional, Sequence, Tuple

Rule = Tuple[str, Tuple[str, ...]]

DEVICE_RULES: Sequence[Rule] = (
    ("tablet", ("ipad", "tablet")),
    ("mobile", ("mobile", "android", "iphone")),
)

OS_RULES: Sequence[Rule] = (
    ("Windows", ("windows",)),
    ("Android", ("android",)),
    ("iOS", ("iphone", "ipad")),
    ("macOS", ("mac",)),
    ("Linux", ("linux",)),
)

BROWSER_RULES: Sequence[Rule] = (
    ("Edge", ("edg",)),
    ("Opera", ("opera", "opr/")),
    ("Firefox", ("firefox", "fxios")),
    ("Chrome", ("chrome", "crios")),
    ("Safari", ("safari",)),
)

DEFAULT_DEVICE = "desktop"
UNKNOWN = "Unknown"


def _classify(ua: str, rules: Sequence[Rule], default: str) -> str:
    for label, needles in rules:
        if any(needle in ua for needle in needles):
            return label
    return default


def parse_user_agent(user_agent: Optional[str]) -> Tuple[str, str, str]:
    """
    Classify a User-Agent string.

    Returns:
        (device, os, browser), defaulting to ("desktop", "Unknown", "Unknown")
    """
    ua = (user_agent or "").lower()
    return (
        _classify(ua, DEVICE_RULES, DEFAULT_DEVICE),
        _classify(ua, OS_RULES, UNKNOWN),
        _classify(ua, BROWSER_RULES, UNKNOWN),
    )
