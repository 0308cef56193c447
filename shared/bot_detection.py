"""
Bot and mail-proxy open detection.

Mail providers fetch remote images through their own proxies and link
scanners prefetch everything, so a pixel load is not always a human reading
the message. Two ordered rule lists are checked:

1. lowercase User-Agent substrings (``data/bot_user_agents.txt``)
2. source IP prefixes of known image proxies (``data/bot_ip_prefixes.txt``)

The lists are plain data files so the policy can be extended without touching
the matching code. They are loaded lazily via ``functools.lru_cache`` so there
is no import-time I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_USER_AGENTS_FILE = DATA_DIR / "bot_user_agents.txt"
DEFAULT_IP_PREFIXES_FILE = DATA_DIR / "bot_ip_prefixes.txt"


@dataclass(frozen=True)
class BotRules:
    """Ordered matching rules. Earlier entries win when several match."""

    user_agent_patterns: tuple[str, ...]
    ip_prefixes: tuple[str, ...]


@dataclass(frozen=True)
class BotClassification:
    is_bot: bool
    reason: Optional[str] = None


HUMAN = BotClassification(is_bot=False)


def _read_rule_file(path: Path) -> tuple[str, ...]:
    with open(path, "r", encoding="utf-8") as fh:
        entries = (line.strip() for line in fh)
        return tuple(entry for entry in entries if entry and not entry.startswith("#"))


@lru_cache(maxsize=8)
def load_bot_rules(
    user_agents_file: Optional[str] = None,
    ip_prefixes_file: Optional[str] = None,
) -> BotRules:
    """Load and cache rule lists, falling back to the bundled files.

    User-Agent patterns are lowercased on load so matching stays a plain
    substring test. A missing or unreadable file raises ``OSError``: a
    silently empty rule set would count every proxy fetch as a human open.
    """
    ua_path = Path(user_agents_file) if user_agents_file else DEFAULT_USER_AGENTS_FILE
    ip_path = Path(ip_prefixes_file) if ip_prefixes_file else DEFAULT_IP_PREFIXES_FILE
    return BotRules(
        user_agent_patterns=tuple(p.lower() for p in _read_rule_file(ua_path)),
        ip_prefixes=_read_rule_file(ip_path),
    )


def classify(
    user_agent: Optional[str],
    source_ip: Optional[str],
    rules: Optional[BotRules] = None,
) -> BotClassification:
    """Classify a pixel fetch as human or automated.

    User-Agent rules are checked before IP rules; within each list the first
    match wins and is reported in ``reason``.

    Args:
        user_agent: Raw ``User-Agent`` header value (may be empty or None).
        source_ip: Resolved client address (may be empty or None).
        rules: Rule set to apply; defaults to the bundled lists.

    Returns:
        ``BotClassification`` with ``reason`` set to ``"user-agent: <pattern>"``
        or ``"ip-range: <prefix>*"`` for bots, ``None`` for humans.
    """
    if rules is None:
        rules = load_bot_rules()

    ua = (user_agent or "").lower()
    if ua:
        for pattern in rules.user_agent_patterns:
            if pattern in ua:
                return BotClassification(is_bot=True, reason=f"user-agent: {pattern}")

    if source_ip:
        for prefix in rules.ip_prefixes:
            if source_ip.startswith(prefix):
                return BotClassification(is_bot=True, reason=f"ip-range: {prefix}*")

    return HUMAN
