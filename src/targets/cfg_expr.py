"""Parsing and evaluation of dependency platform predicates.

A predicate is either a plain target triple, which matches only itself, or
a cfg expression:

    cfg(all(unix, not(target_os = "macos")))

Grammar:

    predicate := "cfg" "(" expr ")"
    expr      := IDENT | IDENT "=" STRING
               | ("all" | "any") "(" [expr ("," expr)* [","]] ")"
               | "not" "(" expr ")"
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from errors import InvalidPlatformPredicate
from targets.triple import TargetInfo

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
      | "(?P<string>[^"]*)"
      | (?P<punct>[(),=])
    )""",
    re.VERBOSE,
)


def tokenize(text: str) -> List[Tuple[str, str]]:
    """Split a predicate into (kind, value) tokens."""
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            raise InvalidPlatformPredicate(f"Unexpected character at {pos} in {text!r}")
        if m.group("ident") is not None:
            tokens.append(("ident", m.group("ident")))
        elif m.group("string") is not None:
            tokens.append(("string", m.group("string")))
        else:
            tokens.append(("punct", m.group("punct")))
        pos = m.end()
    return tokens


class CfgExpr:
    """Base class of parsed cfg expressions."""

    def eval(self, info: TargetInfo) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class CfgFlag(CfgExpr):
    name: str

    def eval(self, info: TargetInfo) -> bool:
        return info.has_flag(self.name)


@dataclass(frozen=True)
class CfgKeyValue(CfgExpr):
    key: str
    value: str

    def eval(self, info: TargetInfo) -> bool:
        return info.has_value(self.key, self.value)


@dataclass(frozen=True)
class CfgAll(CfgExpr):
    children: Tuple[CfgExpr, ...]

    def eval(self, info: TargetInfo) -> bool:
        return all(c.eval(info) for c in self.children)


@dataclass(frozen=True)
class CfgAny(CfgExpr):
    children: Tuple[CfgExpr, ...]

    def eval(self, info: TargetInfo) -> bool:
        return any(c.eval(info) for c in self.children)


@dataclass(frozen=True)
class CfgNot(CfgExpr):
    child: CfgExpr

    def eval(self, info: TargetInfo) -> bool:
        return not self.child.eval(info)


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> Tuple[str, str]:
        tok = self._peek()
        if tok is None:
            raise InvalidPlatformPredicate(f"Unexpected end of predicate {self.text!r}")
        self.pos += 1
        return tok

    def _expect(self, kind: str, value: Optional[str] = None) -> str:
        tok_kind, tok_value = self._next()
        if tok_kind != kind or (value is not None and tok_value != value):
            want = value or kind
            raise InvalidPlatformPredicate(
                f"Expected {want!r} but found {tok_value!r} in {self.text!r}"
            )
        return tok_value

    def parse_predicate(self) -> CfgExpr:
        self._expect("ident", "cfg")
        self._expect("punct", "(")
        expr = self.parse_expr()
        self._expect("punct", ")")
        if self._peek() is not None:
            raise InvalidPlatformPredicate(f"Trailing input in {self.text!r}")
        return expr

    def parse_expr(self) -> CfgExpr:
        name = self._expect("ident")
        nxt = self._peek()
        if name in ("all", "any") and nxt == ("punct", "("):
            children = self._parse_list()
            return CfgAll(children) if name == "all" else CfgAny(children)
        if name == "not" and nxt == ("punct", "("):
            self._next()
            child = self.parse_expr()
            self._expect("punct", ")")
            return CfgNot(child)
        if nxt == ("punct", "="):
            self._next()
            return CfgKeyValue(name, self._expect("string"))
        return CfgFlag(name)

    def _parse_list(self) -> Tuple[CfgExpr, ...]:
        self._expect("punct", "(")
        children: List[CfgExpr] = []
        while self._peek() != ("punct", ")"):
            children.append(self.parse_expr())
            if self._peek() == ("punct", ","):
                self._next()
            elif self._peek() != ("punct", ")"):
                raise InvalidPlatformPredicate(f"Expected ',' or ')' in {self.text!r}")
        self._next()
        return tuple(children)


def parse_cfg(text: str) -> CfgExpr:
    """Parse a `cfg(...)` predicate.

    Raises:
        InvalidPlatformPredicate: On malformed input.
    """
    return _Parser(text).parse_predicate()


class PlatformEvaluator:
    """Evaluates predicates per platform, caching parsed expressions and triples."""

    def __init__(self) -> None:
        self._exprs: Dict[str, CfgExpr] = {}
        self._infos: Dict[str, TargetInfo] = {}

    def target_info(self, triple: str) -> TargetInfo:
        info = self._infos.get(triple)
        if info is None:
            info = TargetInfo.from_triple(triple)
            self._infos[triple] = info
        return info

    def expression(self, predicate: str) -> CfgExpr:
        expr = self._exprs.get(predicate)
        if expr is None:
            expr = parse_cfg(predicate)
            self._exprs[predicate] = expr
            logger.debug("Parsed platform predicate %s", predicate)
        return expr

    def matches(self, predicate: Optional[str], triple: str) -> bool:
        """True when a dependency gated by `predicate` applies on `triple`.

        A missing predicate carries no platform restriction.
        """
        if predicate is None:
            return True
        predicate = predicate.strip()
        if predicate.startswith("cfg"):
            return self.expression(predicate).eval(self.target_info(triple))
        return predicate == triple
