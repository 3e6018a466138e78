# src/bibobridge/application/services/latex_codec.py
"""
LaTeX escape codec for BibTeX field values.

Decoding turns accent commands (``{\\'e}``, ``\\c{c}``, ``{\\v s}``),
special letters (``{\\ss}``, ``\\o``) and escaped symbols (``\\&``) into
Unicode. Encoding applies the reverse substitution.

The lookup tables are built once at import and are read-only.
"""

from __future__ import annotations

import re
import string
import unicodedata
from types import MappingProxyType
from typing import Dict, Optional, Tuple

# Accent command -> combining mark. Symbol commands may be written without
# braces (``\\'e``), letter commands need braces or a space (``\\v{s}``).
_SYMBOL_ACCENTS = {
    "'": "́",
    "`": "̀",
    "^": "̂",
    '"': "̈",
    "~": "̃",
    "=": "̄",
    ".": "̇",
}
_LETTER_ACCENTS = {
    "c": "̧",
    "v": "̌",
    "u": "̆",
    "H": "̋",
    "r": "̊",
    "k": "̨",
    "d": "̣",
    "b": "̱",
}

SPECIAL_LETTERS = MappingProxyType(
    {
        "aa": "å",
        "AA": "Å",
        "ae": "æ",
        "AE": "Æ",
        "oe": "œ",
        "OE": "Œ",
        "ss": "ß",
        "dj": "đ",
        "DJ": "Đ",
        "ng": "ŋ",
        "NG": "Ŋ",
        "th": "þ",
        "TH": "Þ",
        "dh": "ð",
        "DH": "Ð",
        "o": "ø",
        "O": "Ø",
        "l": "ł",
        "L": "Ł",
        "i": "ı",
        "j": "ȷ",
    }
)

ESCAPED_SYMBOLS = "&%$_#"

# Fields whose values are identifiers or locators and stay verbatim.
VERBATIM_FIELDS = frozenset({"url", "doi", "handle", "uri", "isbn", "issn", "eprint", "file"})


def _build_accent_table() -> Dict[Tuple[str, str], str]:
    table: Dict[Tuple[str, str], str] = {}
    for command, mark in {**_SYMBOL_ACCENTS, **_LETTER_ACCENTS}.items():
        for letter in string.ascii_letters:
            composed = unicodedata.normalize("NFC", letter + mark)
            if len(composed) == 1:
                table[(command, letter)] = composed
    return table


def _format_accent(command: str, letter: str) -> str:
    if command in _SYMBOL_ACCENTS:
        return "{\\%s%s}" % (command, letter)
    return "{\\%s{%s}}" % (command, letter)


ACCENT_TABLE = MappingProxyType(_build_accent_table())


def _build_encode_table() -> Dict[str, str]:
    table: Dict[str, str] = {}
    for (command, letter), char in ACCENT_TABLE.items():
        table.setdefault(char, _format_accent(command, letter))
    # Dedicated letter macros win over accent forms (å is {\aa}, not {\r{a}}).
    for macro, char in SPECIAL_LETTERS.items():
        if macro in ("i", "j"):
            continue
        table[char] = "{\\%s}" % macro
    for symbol in ESCAPED_SYMBOLS:
        table[symbol] = "\\" + symbol
    return table


_ENCODE_TABLE = MappingProxyType(_build_encode_table())

_SYMBOL_CMD_RE = re.compile(
    r"(?P<open>\{)?\\(?P<cmd>['`^\"~=.])\s*"
    r"(?:\{\s*(?P<sb>\\[ij](?![A-Za-z])|[A-Za-z])\s*\}"
    r"|(?P<sp>\\[ij](?![A-Za-z])|[A-Za-z]))"
    r"(?(open)\})"
)
_LETTER_CMD_RE = re.compile(
    r"(?P<open>\{)?\\(?P<cmd>[cvuHrkdb])"
    r"(?:\s*\{\s*(?P<lb>\\[ij](?![A-Za-z])|[A-Za-z])\s*\}"
    r"|\s+(?P<ls>\\[ij](?![A-Za-z])|[A-Za-z])"
    r"|(?P<lt>[A-Za-z])(?=\}))"
    r"(?(open)\})"
)
_SPECIAL_RE = re.compile(
    r"(?P<open>\{)?\\(?P<macro>"
    + "|".join(sorted((re.escape(m) for m in SPECIAL_LETTERS), key=len, reverse=True))
    + r")(?![A-Za-z])(?:\{\}|[ \t](?=[A-Za-z]))?(?(open)\})"
)
_ESCAPE_RE = re.compile(r"\\([" + re.escape(ESCAPED_SYMBOLS) + r"])")


def _base_letter(arg: str) -> str:
    # \i and \j are dotless forms that take accents.
    return arg[1] if arg.startswith("\\") else arg


def _replace_accent(command: str, arg: Optional[str], original: str) -> str:
    if arg is None:
        return original
    return ACCENT_TABLE.get((command, _base_letter(arg)), original)


def _symbol_sub(match: "re.Match[str]") -> str:
    arg = match.group("sb") or match.group("sp")
    return _replace_accent(match.group("cmd"), arg, match.group(0))


def _letter_sub(match: "re.Match[str]") -> str:
    tight = match.group("lt")
    # {\dh} and {\dj} are letters, not \d accents.
    if tight and match.group("cmd") + tight in SPECIAL_LETTERS:
        return SPECIAL_LETTERS[match.group("cmd") + tight]
    arg = match.group("lb") or match.group("ls") or tight
    return _replace_accent(match.group("cmd"), arg, match.group(0))


def _special_sub(match: "re.Match[str]") -> str:
    return SPECIAL_LETTERS[match.group("macro")]


def decode(text: Optional[str]) -> Optional[str]:
    """Replace LaTeX escapes with Unicode characters. Unknown commands are left as-is."""
    if not text or "\\" not in text:
        return text
    result = _SYMBOL_CMD_RE.sub(_symbol_sub, text)
    result = _LETTER_CMD_RE.sub(_letter_sub, result)
    result = _SPECIAL_RE.sub(_special_sub, result)
    result = _ESCAPE_RE.sub(r"\1", result)
    return result


def encode(text: Optional[str]) -> Optional[str]:
    """Replace non-ASCII letters and reserved symbols with LaTeX escapes."""
    if not text:
        return text
    text = unicodedata.normalize("NFC", text)
    out = []
    for idx, ch in enumerate(text):
        # Already escaped symbols are kept.
        if ch in ESCAPED_SYMBOLS and idx > 0 and text[idx - 1] == "\\":
            out.append(ch)
            continue
        out.append(_ENCODE_TABLE.get(ch, ch))
    return "".join(out)


def decode_field(name: str, value: Optional[str]) -> Optional[str]:
    if name.lower() in VERBATIM_FIELDS:
        return value
    return decode(value)


def encode_field(name: str, value: Optional[str]) -> Optional[str]:
    if name.lower() in VERBATIM_FIELDS:
        return value
    return encode(value)
