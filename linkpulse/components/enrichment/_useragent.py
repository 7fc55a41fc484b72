"""
User-agent classification.

Rule priority (first match wins, case-insensitive substring):
- "android" -> os android, device mobile
- "ipad" / "iphone" / "ipod" -> os ios, device tablet for iPad else mobile
- "win" -> windows, "mac" -> macos, "linux" -> linux, else unknown

A "mobile" token then forces device mobile whatever the OS branch decided,
including an iPad tablet. That override is kept as-is: dashboards already
report on it. Device defaults to desktop.
"""

from __future__ import annotations

import re

from linkpulse.core.entities import DeviceType, OSType

from .models import BrowserType, ParsedUserAgent

_BROWSER_VERSION_PATTERNS = (
    re.compile(r"edg/([\d.]+)"),
    re.compile(r"opr/([\d.]+)"),
    re.compile(r"chrome/([\d.]+)"),
    re.compile(r"firefox/([\d.]+)"),
    re.compile(r"version/([\d.]+)"),  # Safari
)

_WINDOWS_NT_VERSIONS = {
    "10.0": "10/11",
    "6.3": "8.1",
    "6.2": "8",
    "6.1": "7",
}


def classify(user_agent: str | None) -> tuple[DeviceType, OSType]:
    """Derive (device, os) from a raw user-agent string."""
    ua = (user_agent or "").lower()

    device: DeviceType = "desktop"
    os: OSType = "unknown"

    if "android" in ua:
        os = "android"
        device = "mobile"
    elif "ipad" in ua or "iphone" in ua or "ipod" in ua:
        os = "ios"
        device = "tablet" if "ipad" in ua else "mobile"
    elif "win" in ua:
        os = "windows"
    elif "mac" in ua:
        os = "macos"
    elif "linux" in ua:
        os = "linux"

    if "mobile" in ua:
        device = "mobile"

    return device, os


def detect_browser(ua: str) -> BrowserType:
    ua = ua.lower()
    if "edg/" in ua:
        return "Edge"
    if "opr/" in ua or "opera" in ua:
        return "Opera"
    if "chrome" in ua and "chromium" not in ua:
        return "Chrome"
    if "firefox" in ua:
        return "Firefox"
    if "safari" in ua and "chrome" not in ua and "chromium" not in ua:
        return "Safari"
    return "Other"


def detect_browser_version(ua: str) -> str:
    """Major version of the detected browser, or "Unknown"."""
    ua = ua.lower()
    for pattern in _BROWSER_VERSION_PATTERNS:
        match = pattern.search(ua)
        if match:
            return match.group(1).split(".")[0]
    return "Unknown"


def detect_os_version(ua: str) -> str:
    ua = ua.lower()

    if "windows" in ua:
        match = re.search(r"windows nt ([\d.]+)", ua)
        if match:
            return _WINDOWS_NT_VERSIONS.get(match.group(1), match.group(1))

    # iOS before macOS: iOS UAs also say "like Mac OS X"
    match = re.search(r"os ([\d_]+) like mac os x", ua)
    if match:
        return match.group(1).replace("_", ".")

    if "mac os x" in ua:
        match = re.search(r"mac os x ([\d_]+)", ua)
        return match.group(1).replace("_", ".") if match else "Unknown"

    if "android" in ua:
        match = re.search(r"android ([\d.]+)", ua)
        return match.group(1) if match else "Unknown"

    return "Unknown"


def parse_user_agent(user_agent: str | None) -> ParsedUserAgent:
    """Full classification: device, OS, browser and versions."""
    ua = user_agent or ""
    device, os = classify(ua)
    return ParsedUserAgent(
        device=device,
        os=os,
        browser=detect_browser(ua),
        browser_version=detect_browser_version(ua),
        os_version=detect_os_version(ua),
    )
