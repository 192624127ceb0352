"""
Access Control Domain

Access key checks and the cookie instructions that follow from them.
"""

from .services import (
    ACCESS_KEY_COOKIE_NAME,
    ACCESS_KEY_HEADER_NAME,
    ACCESS_KEY_PARAM_NAME,
    AccessCookiePolicy,
    AccessDecision,
    AccessKeyGate,
    AccessKeySource,
    CookieInstruction,
    Credentials,
)

__all__ = [
    "ACCESS_KEY_COOKIE_NAME",
    "ACCESS_KEY_HEADER_NAME",
    "ACCESS_KEY_PARAM_NAME",
    "AccessCookiePolicy",
    "AccessDecision",
    "AccessKeyGate",
    "AccessKeySource",
    "CookieInstruction",
    "Credentials",
]
