from __future__ import annotations

import re
from enum import Enum
from typing import Sequence

# Acronym runs stop before a capitalized word: HTTPServer -> HTTP, Server.
_WORDS_SPLIT_DIGITS = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")
_WORDS_KEEP_DIGITS = re.compile(r"[0-9]*(?:[A-Z]+(?![a-z])|[A-Z]?[a-z]+)[0-9]*|[0-9]+")
_NOT_IDENT = re.compile(r"[^A-Za-z0-9_]")


class CaseStyle(str, Enum):
    PASCAL = "PascalCase"
    CAMEL = "camelCase"
    SNAKE = "snake_case"
    KEBAB = "kebab-case"
    TITLE = "Title Case"
    SCREAMING_SNAKE = "SCREAMING_SNAKE_CASE"

    @classmethod
    def parse(cls, name: str) -> "CaseStyle":
        """
        Accepts the canonical names and the short spellings used in config files
        (pascal, camel, snake, kebab, title, upper), ignoring case, '_', '-' and spaces.
        Raises ValueError on anything else.
        """
        key = re.sub(r"[\s_\-]", "", str(name)).lower()
        try:
            return _ALIASES[key]
        except KeyError:
            choices = ", ".join(s.value for s in cls)
            raise ValueError(f"unknown case style {name!r} (expected one of: {choices})") from None

    def convert(self, words: Sequence[str]) -> str:
        words = [w.lower() for w in words if w]
        if not words:
            return ""
        if self is CaseStyle.PASCAL:
            return "".join(_capitalize(w) for w in words)
        if self is CaseStyle.CAMEL:
            return words[0] + "".join(_capitalize(w) for w in words[1:])
        if self is CaseStyle.SNAKE:
            return "_".join(words)
        if self is CaseStyle.KEBAB:
            return "-".join(words)
        if self is CaseStyle.TITLE:
            return " ".join(_capitalize(w) for w in words)
        return "_".join(w.upper() for w in words)


_ALIASES = {
    "pascal": CaseStyle.PASCAL,
    "pascalcase": CaseStyle.PASCAL,
    "camel": CaseStyle.CAMEL,
    "camelcase": CaseStyle.CAMEL,
    "snake": CaseStyle.SNAKE,
    "snakecase": CaseStyle.SNAKE,
    "kebab": CaseStyle.KEBAB,
    "kebabcase": CaseStyle.KEBAB,
    "title": CaseStyle.TITLE,
    "titlecase": CaseStyle.TITLE,
    "upper": CaseStyle.SCREAMING_SNAKE,
    "uppercase": CaseStyle.SCREAMING_SNAKE,
    "screamingsnake": CaseStyle.SCREAMING_SNAKE,
    "screamingsnakecase": CaseStyle.SCREAMING_SNAKE,
}


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def split_words(text: str, separators: str = "", preserve_numbers: bool = False) -> list[str]:
    """
    Split text into words on the given separator characters and on case boundaries.

      split_words("user-profile", "-")      -> ["user", "profile"]
      split_words("userId")                 -> ["user", "Id"]
      split_words("v2beta")                 -> ["v2", "beta"]
      split_words("v2beta", preserve_numbers=True) -> ["v", "2", "beta"]

    Characters that are neither separators nor letters/digits are dropped.
    """
    pattern = _WORDS_SPLIT_DIGITS if preserve_numbers else _WORDS_KEEP_DIGITS
    chunks = [text]
    for sep in separators:
        chunks = [part for chunk in chunks for part in chunk.split(sep)]

    out: list[str] = []
    for chunk in chunks:
        out.extend(pattern.findall(chunk))
    return out


def sanitize_identifier(name: str) -> str:
    # invalid characters become '_'; identifiers never start with a digit
    result = _NOT_IDENT.sub("_", name)
    if not result or result[0].isdigit():
        result = "_" + result
    return result


def recase(identifier: str, style: CaseStyle) -> str:
    """Re-split an already generated identifier and render it in another style."""
    words = split_words(identifier, "_- ", preserve_numbers=False)
    return style.convert(words)
