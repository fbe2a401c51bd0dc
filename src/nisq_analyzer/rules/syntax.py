# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Syntactic handling of Prolog selection rules.

Selection rules are ordinary Prolog clauses. The head names the rule and
lists the selection parameters as variables::

    executable(N, shor_general_qiskit) :- N > 2, N =< 32.

Only the clause structure is inspected here: clause boundaries, the
head functor and its arguments. Evaluation is left to the Prolog
backend.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

from nisq_analyzer.errors import RuleSyntaxError, UnboundParameterError


_ATOM_PATTERN = re.compile(r"^[a-z][A-Za-z0-9_]*$")
_VARIABLE_PATTERN = re.compile(r"^[A-Z_][A-Za-z0-9_]*$")
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d+)?([eE][+-]?\d+)?)$")
_NAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")

_OPEN = "([{"
_CLOSE = ")]}"


@dataclass(frozen=True)
class ParsedRule:
    """
    Structural view of a selection rule.

    Attributes
    ----------
    name : str
        Head functor name.
    signature : tuple of str
        Head arguments of the first clause, as written.
    clauses : tuple of str
        Clause texts without the terminating full stop.
    variables : frozenset of str
        Named variables occurring anywhere in any clause head, including
        inside compound arguments.
    """

    name: str
    signature: tuple[str, ...]
    clauses: tuple[str, ...]
    variables: frozenset[str]

    @property
    def arity(self) -> int:
        return len(self.signature)

    @property
    def program(self) -> str:
        """Rule text normalised to one clause per line."""
        return "".join(f"{clause}.\n" for clause in self.clauses)


def _strip_comments_and_split(text: str) -> list[str]:
    """Split source text into clauses, dropping comments."""
    clauses: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    depth = 0
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if quote is not None:
            buf.append(ch)
            if ch == "\\" and i + 1 < n:
                buf.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch == "%":
            while i < n and text[i] != "\n":
                i += 1
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                raise RuleSyntaxError("Unterminated block comment", rule=text)
            i = end + 2
            continue

        if ch in "'\"`":
            # 0'c is a character code literal, not a quoted atom
            if ch == "'" and buf and buf[-1] == "0" and (len(buf) < 2 or not buf[-2].isalnum()):
                buf.append(ch)
                if i + 1 < n:
                    buf.append(text[i + 1])
                i += 2
                continue
            quote = ch
        elif ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
            if depth < 0:
                raise RuleSyntaxError(f"Unbalanced {ch!r}", rule=text)
        elif ch == "." and depth == 0 and (i + 1 == n or text[i + 1].isspace() or text[i + 1] == "%"):
            clause = "".join(buf).strip()
            if not clause:
                raise RuleSyntaxError("Empty clause", rule=text)
            clauses.append(clause)
            buf = []
            i += 1
            continue

        buf.append(ch)
        i += 1

    if quote is not None:
        raise RuleSyntaxError("Unterminated quoted term", rule=text)
    if depth != 0:
        raise RuleSyntaxError("Unbalanced brackets", rule=text)
    if "".join(buf).strip():
        raise RuleSyntaxError("Clause is not terminated by '.'", rule=text)
    return clauses


def _split_top_level(text: str, sep: str, maxsplit: int = -1) -> list[str]:
    """Split on ``sep`` outside quotes and brackets."""
    parts: list[str] = []
    quote: str | None = None
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif depth == 0 and text.startswith(sep, i) and maxsplit != 0:
            parts.append(text[start:i])
            i += len(sep)
            start = i
            maxsplit -= 1
            continue
        i += 1
    parts.append(text[start:])
    return parts


def _parse_head(clause: str, rule: str) -> tuple[str, tuple[str, ...]]:
    head = _split_top_level(clause, ":-", maxsplit=1)[0].strip()
    if not head:
        raise RuleSyntaxError("Clause has no head", rule=rule)

    paren = head.find("(")
    if paren < 0:
        name, args = head, ()
    else:
        if not head.endswith(")"):
            raise RuleSyntaxError(f"Malformed rule head {head!r}", rule=rule)
        name = head[:paren].strip()
        inner = head[paren + 1 : -1]
        args = tuple(a.strip() for a in _split_top_level(inner, ","))
        if any(not a for a in args):
            raise RuleSyntaxError(f"Empty argument in rule head {head!r}", rule=rule)

    if not _ATOM_PATTERN.match(name):
        raise RuleSyntaxError(f"Invalid rule name {name!r}", rule=rule)
    return name, args


def is_variable(term: str) -> bool:
    """True if ``term`` is a named (non-anonymous) Prolog variable."""
    return bool(_VARIABLE_PATTERN.match(term)) and not term.startswith("_")


def _variable_spans(term: str) -> list[tuple[int, int]]:
    """Positions of named variables in ``term``, skipping quoted text."""
    spans: list[tuple[int, int]] = []
    quote: str | None = None
    i = 0
    while i < len(term):
        ch = term[i]
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in "'\"`":
            # 0'c character code
            if ch == "'" and i > 0 and term[i - 1] == "0" and (i < 2 or not term[i - 2].isalnum()):
                i += 2
                continue
            quote = ch
            i += 1
            continue
        match = _NAME_PATTERN.match(term, i)
        if match is None:
            i += 1
            continue
        if is_variable(match.group()):
            spans.append(match.span())
        i = match.end()
    return spans


def term_variables(term: str) -> set[str]:
    """Named variables occurring anywhere in ``term``."""
    return {term[start:end] for start, end in _variable_spans(term)}


def _head_variables(args: tuple[str, ...]) -> set[str]:
    names: set[str] = set()
    for arg in args:
        names.update(term_variables(arg))
    return names


def _substitute(term: str, binding: Mapping[str, str]) -> str:
    parts: list[str] = []
    pos = 0
    for start, end in _variable_spans(term):
        parts.append(term[pos:start])
        value = format_value(binding[term[start:end]])
        if value.startswith("-") and (start, end) != (0, len(term)):
            value = f"({value})"
        parts.append(value)
        pos = end
    parts.append(term[pos:])
    return "".join(parts)


def parse_rule(rule: str) -> ParsedRule:
    """
    Parse a selection rule into its structural parts.

    Parameters
    ----------
    rule : str
        One or more Prolog clauses sharing head name and arity.

    Returns
    -------
    ParsedRule
        Parsed rule.

    Raises
    ------
    RuleSyntaxError
        If the text is not a sequence of well-formed clauses, or the
        clauses disagree on head name or arity.
    """
    if not rule or not rule.strip():
        raise RuleSyntaxError("Selection rule is empty", rule=rule)

    clauses = _strip_comments_and_split(rule)
    name, signature = _parse_head(clauses[0], rule)
    variables = _head_variables(signature)

    for clause in clauses[1:]:
        other_name, other_args = _parse_head(clause, rule)
        if (other_name, len(other_args)) != (name, len(signature)):
            raise RuleSyntaxError(
                f"Clause head {other_name}/{len(other_args)} does not match "
                f"{name}/{len(signature)}",
                rule=rule,
            )
        variables.update(_head_variables(other_args))

    return ParsedRule(
        name=name,
        signature=signature,
        clauses=tuple(clauses),
        variables=frozenset(variables),
    )


def free_variables(rule: str) -> set[str]:
    """
    Names of the parameters a rule must be bound with.

    Parameters
    ----------
    rule : str
        Selection rule text.

    Returns
    -------
    set of str
        Named variables of all clause heads, nested terms included.

    Raises
    ------
    RuleSyntaxError
        If the rule cannot be parsed.
    """
    return set(parse_rule(rule).variables)


def quote_atom(value: str) -> str:
    """Render ``value`` as a single-quoted Prolog atom."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def format_value(value: str) -> str:
    """
    Render a bound parameter value as a Prolog term.

    Numeric text becomes a number so that arithmetic comparisons in
    rule bodies work; anything else becomes a quoted atom.
    """
    text = value.strip()
    if _NUMBER_PATTERN.match(text):
        return text.lstrip("+")
    return quote_atom(value)


def build_goal(parsed: ParsedRule, binding: Mapping[str, str]) -> str:
    """
    Build the query for a rule by substituting bound head variables,
    including those nested in compound arguments.

    Parameters
    ----------
    parsed : ParsedRule
        Parsed selection rule.
    binding : Mapping
        Parameter values keyed by variable name.

    Returns
    -------
    str
        Goal text without terminating full stop.

    Raises
    ------
    UnboundParameterError
        If a head variable of the first clause has no value.
    """
    missing = _head_variables(parsed.signature) - set(binding)
    if missing:
        raise UnboundParameterError(missing, rule=parsed.program)

    if not parsed.signature:
        return parsed.name
    args = [_substitute(a, binding) for a in parsed.signature]
    return f"{parsed.name}({', '.join(args)})"
