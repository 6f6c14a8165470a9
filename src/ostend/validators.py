"""Character-set rules from RFC 6749 Appendix A."""

from __future__ import annotations

import re

_NCHAR = re.compile(r"[\w.\-]+", re.ASCII)
_NQCHAR = re.compile(r"[\x21\x23-\x5b\x5d-\x7e]+")
_NQSCHAR = re.compile(r"[\x20-\x21\x23-\x5b\x5d-\x7e]+")
_UCHAR = re.compile(r"[\x09\x20-\x7e\x80-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]+")
_URI = re.compile(r"[a-zA-Z][a-zA-Z0-9+.\-]+:")
_VSCHAR = re.compile(r"[\x20-\x7e]+")


def is_nchar(value: str) -> bool:
    return _NCHAR.fullmatch(value) is not None


def is_nqchar(value: str) -> bool:
    return _NQCHAR.fullmatch(value) is not None


def is_nqschar(value: str) -> bool:
    return _NQSCHAR.fullmatch(value) is not None


def is_uchar(value: str) -> bool:
    return _UCHAR.fullmatch(value) is not None


def is_uri(value: str) -> bool:
    # Only the scheme is checked, as in RFC 3986 section 3.1.
    return _URI.match(value) is not None


def is_vschar(value: str) -> bool:
    return _VSCHAR.fullmatch(value) is not None
