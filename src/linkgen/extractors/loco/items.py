from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from linkgen.extractors.loco.lexer import LexError, Token

_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = {v: k for k, v in _OPEN.items()}


@dataclass(frozen=True)
class FunctionItem:
    name: str
    line: int
    params: tuple[Token, ...]   # tokens between the parameter parens
    returns: tuple[Token, ...]  # tokens after "->" up to the body (may be empty)
    body: tuple[Token, ...]     # tokens between the body braces


def matching_close(tokens: Sequence[Token], open_idx: int) -> int:
    """Index of the bracket closing tokens[open_idx]. Raises LexError if unbalanced."""
    stack: list[str] = []
    for i in range(open_idx, len(tokens)):
        t = tokens[i]
        if t.kind != "punct":
            continue
        if t.value in _OPEN:
            stack.append(t.value)
        elif t.value in _CLOSE:
            if not stack or stack[-1] != _CLOSE[t.value]:
                raise LexError(f"unbalanced {t.value!r}", t.line)
            stack.pop()
            if not stack:
                return i
    raise LexError(f"unclosed {tokens[open_idx].value!r}", tokens[open_idx].line)


def split_top_level(tokens: Sequence[Token], sep: str = ",") -> list[list[Token]]:
    """Split on separators that are not nested inside (), [], {} or <>."""
    parts: list[list[Token]] = [[]]
    depth = 0
    angle = 0
    for t in tokens:
        if t.kind == "punct":
            if t.value in _OPEN:
                depth += 1
            elif t.value in _CLOSE:
                depth -= 1
            elif t.value == "<":
                angle += 1
            elif t.value == ">" and angle:
                angle -= 1
            elif t.value == sep and depth == 0 and angle == 0:
                parts.append([])
                continue
        parts[-1].append(t)
    if not parts[-1]:
        parts.pop()
    return parts


def iter_functions(tokens: Sequence[Token]) -> Iterator[FunctionItem]:
    """
    Yield every `fn name(...) -> ... { ... }` with a body, in source order.
    Functions nested inside another function's body are not yielded separately.
    """
    i = 0
    n = len(tokens)
    while i < n:
        t = tokens[i]
        if not (t.is_ident("fn") and i + 1 < n and tokens[i + 1].kind == "ident"):
            i += 1
            continue

        name = tokens[i + 1].value
        j = i + 2
        # skip generics up to the parameter list
        while j < n and not tokens[j].is_punct("("):
            if tokens[j].is_punct(";") or tokens[j].is_punct("{"):
                break
            j += 1
        if j >= n or not tokens[j].is_punct("("):
            i = j
            continue

        params_close = matching_close(tokens, j)
        params = tuple(tokens[j + 1 : params_close])

        k = params_close + 1
        while k < n and not tokens[k].is_punct("{") and not tokens[k].is_punct(";"):
            k += 1
        if k >= n or tokens[k].is_punct(";"):
            # declaration without body (trait item / extern)
            i = k + 1
            continue

        returns: tuple[Token, ...] = ()
        head = tokens[params_close + 1 : k]
        for idx, tok in enumerate(head):
            if tok.is_punct("->"):
                ret = list(head[idx + 1 :])
                for w, x in enumerate(ret):
                    if x.is_ident("where"):
                        ret = ret[:w]
                        break
                returns = tuple(ret)
                break

        body_close = matching_close(tokens, k)
        yield FunctionItem(
            name=name,
            line=t.line,
            params=params,
            returns=returns,
            body=tuple(tokens[k + 1 : body_close]),
        )
        i = body_close + 1
