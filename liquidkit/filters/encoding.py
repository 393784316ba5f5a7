"""
HTML, URL and base64 encoding filters.

Decoding invalid base64 raises FilterError; everything else works on the
display string of its input.
"""

from __future__ import annotations

import base64
import binascii
import html
import re
from urllib.parse import quote_plus, unquote_plus

from ..errors import FilterError
from .base import FilterGroup

encoding_filters = FilterGroup("encoding")

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
})

_BARE_AMPERSAND = re.compile(r'&(?!(?:[A-Za-z][A-Za-z0-9]*|#\d+|#[xX][0-9A-Fa-f]+);)')


def _text(value) -> str:
    return value.to_display_string()


@encoding_filters.register("escape")
def escape(value):
    return _text(value).translate(_HTML_ESCAPES)


@encoding_filters.register("escape_once")
def escape_once(value):
    """Escapes HTML without double-escaping existing entities."""
    text = _BARE_AMPERSAND.sub("&amp;", _text(value))
    return text.translate({ord(char): _HTML_ESCAPES[ord(char)] for char in "<>\"'"})


@encoding_filters.register("unescape")
def unescape(value):
    return html.unescape(_text(value))


@encoding_filters.register("url_encode")
def url_encode(value):
    return quote_plus(_text(value))


@encoding_filters.register("url_decode")
def url_decode(value):
    return unquote_plus(_text(value))


@encoding_filters.register("base64_encode")
def base64_encode(value):
    return base64.b64encode(_text(value).encode("utf-8")).decode("ascii")


@encoding_filters.register("base64_decode")
def base64_decode(value):
    return _decode(_text(value), url_safe=False)


@encoding_filters.register("base64_url_safe_encode")
def base64_url_safe_encode(value):
    return base64.urlsafe_b64encode(_text(value).encode("utf-8")).decode("ascii")


@encoding_filters.register("base64_url_safe_decode")
def base64_url_safe_decode(value):
    return _decode(_text(value), url_safe=True)


def _decode(text: str, url_safe: bool) -> str:
    padded = text + "=" * (-len(text) % 4)
    try:
        if url_safe:
            padded = padded.replace("-", "+").replace("_", "/")
        raw = base64.b64decode(padded, validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise FilterError(f"invalid base64 input: {e}") from e
