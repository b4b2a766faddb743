from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Literal, Optional

TokenKind = Literal["ident", "string", "char", "lifetime", "number", "punct"]


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str      # for strings: the decoded literal value
    line: int

    def is_punct(self, value: str) -> bool:
        return self.kind == "punct" and self.value == value

    def is_ident(self, value: Optional[str] = None) -> bool:
        return self.kind == "ident" and (value is None or self.value == value)


class LexError(ValueError):
    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


_RAW_STRING_START = re.compile(r'b?r(#*)"')
_STRING = re.compile(r'b?"((?:\\.|[^"\\])*)"', re.S)
_CHAR = re.compile(r"b?'(?:\\(?:x[0-9A-Fa-f]{2}|u\{[0-9A-Fa-f]+\}|.)|[^\\'\n])'")
_LIFETIME = re.compile(r"'[A-Za-z_][A-Za-z0-9_]*")
_IDENT = re.compile(r"(?:r#)?[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(r"[0-9][0-9A-Za-z_]*(?:\.[0-9][0-9A-Za-z_]*)?")
_WS = re.compile(r"\s+")
_PUNCT2 = ("::", "->", "=>", "==", "!=", "<=", ">=", "&&", "||", "..")

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}


def _unescape(body: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c != "\\" or i + 1 >= len(body):
            out.append(c)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            i += 2
        elif nxt == "\n":
            # line continuation: skip the newline and leading whitespace
            i += 2
            while i < len(body) and body[i] in " \t\r\n":
                i += 1
        elif nxt == "x":
            out.append(chr(int(body[i + 2 : i + 4], 16)))
            i += 4
        elif nxt == "u":
            end = body.index("}", i)
            out.append(chr(int(body[i + 3 : end], 16)))
            i = end + 1
        else:
            out.append(nxt)
            i += 2
    return "".join(out)


def tokenize(source: str) -> list[Token]:
    return list(iter_tokens(source))


def iter_tokens(source: str) -> Iterator[Token]:
    """
    Tokenize Rust source. Comments are skipped (block comments nest),
    string literals are decoded. Not a full Rust lexer: it only needs to be
    precise enough to follow router builder chains and fn signatures.
    """
    pos = 0
    line = 1
    n = len(source)

    while pos < n:
        c = source[pos]

        m = _WS.match(source, pos)
        if m:
            line += m.group(0).count("\n")
            pos = m.end()
            continue

        if source.startswith("//", pos):
            end = source.find("\n", pos)
            pos = n if end == -1 else end
            continue

        if source.startswith("/*", pos):
            depth = 0
            start_line = line
            while pos < n:
                if source.startswith("/*", pos):
                    depth += 1
                    pos += 2
                elif source.startswith("*/", pos):
                    depth -= 1
                    pos += 2
                    if depth == 0:
                        break
                else:
                    if source[pos] == "\n":
                        line += 1
                    pos += 1
            if depth != 0:
                raise LexError("unterminated block comment", start_line)
            continue

        m = _RAW_STRING_START.match(source, pos)
        if m:
            closing = '"' + m.group(1)
            end = source.find(closing, m.end())
            if end == -1:
                raise LexError("unterminated raw string literal", line)
            value = source[m.end() : end]
            yield Token("string", value, line)
            line += value.count("\n")
            pos = end + len(closing)
            continue

        if c == '"' or source.startswith('b"', pos):
            m = _STRING.match(source, pos)
            if not m:
                raise LexError("unterminated string literal", line)
            yield Token("string", _unescape(m.group(1)), line)
            line += m.group(0).count("\n")
            pos = m.end()
            continue

        if c == "'" or source.startswith("b'", pos):
            m = _CHAR.match(source, pos)
            if m:
                yield Token("char", m.group(0), line)
                pos = m.end()
                continue
            m = _LIFETIME.match(source, pos)
            if m:
                yield Token("lifetime", m.group(0), line)
                pos = m.end()
                continue

        m = _IDENT.match(source, pos)
        if m:
            value = m.group(0)
            yield Token("ident", value[2:] if value.startswith("r#") else value, line)
            pos = m.end()
            continue

        m = _NUMBER.match(source, pos)
        if m:
            yield Token("number", m.group(0), line)
            pos = m.end()
            continue

        two = source[pos : pos + 2]
        if two in _PUNCT2:
            yield Token("punct", two, line)
            pos += 2
            continue

        yield Token("punct", c, line)
        pos += 1
