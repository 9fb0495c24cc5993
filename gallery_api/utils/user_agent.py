"""
User-Agent parsing for the device label stored with each active session.
"""

UNKNOWN_DEVICE = "Unknown device"
_UNKNOWN_BROWSER = "Unknown browser"
_UNKNOWN_OS = "Unknown OS"

# (substring, label), first match wins. Mobile markers come first:
# Android agents also contain "Linux", iOS agents "Mac OS X".
_OS_MARKERS = (
    ("Android", "Android"),
    ("iPhone", "iOS"),
    ("iPad", "iOS"),
    ("iPod", "iOS"),
    ("Windows NT 10.0", "Windows 10/11"),
    ("Windows NT 6.3", "Windows 8.1"),
    ("Windows NT 6.2", "Windows 8"),
    ("Windows NT 6.1", "Windows 7"),
    ("Windows NT 6.0", "Windows Vista"),
    ("Windows NT 5.1", "Windows XP"),
    ("Macintosh", "macOS"),
    ("Mac OS X", "macOS"),
    ("Linux", "Linux"),
)


def _browser(user_agent: str) -> str:
    if "Edg/" in user_agent:
        return "Edge"
    if "OPR/" in user_agent or "Opera/" in user_agent:
        return "Opera"
    if "Firefox/" in user_agent:
        return "Firefox"
    if "Chrome/" in user_agent and "Chromium/" not in user_agent:
        return "Chrome"
    if "Safari/" in user_agent and "Chrome/" not in user_agent and "Chromium/" not in user_agent:
        return "Safari"
    if "MSIE " in user_agent or "Trident/" in user_agent:
        return "Internet Explorer"
    return _UNKNOWN_BROWSER


def parse_user_agent(user_agent: str | None) -> str:
    """
    Summarize a User-Agent header as "<browser> on <os>".

    Unrecognized agents longer than 50 characters are truncated rather
    than dropped so the session list still shows something useful.
    """
    if not user_agent:
        return UNKNOWN_DEVICE

    os_name = next((label for marker, label in _OS_MARKERS if marker in user_agent), _UNKNOWN_OS)
    browser = _browser(user_agent)

    if browser == _UNKNOWN_BROWSER and os_name == _UNKNOWN_OS:
        if len(user_agent) > 50:
            return user_agent[:50] + "..."
        return UNKNOWN_DEVICE

    return f"{browser} on {os_name}"
