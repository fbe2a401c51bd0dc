# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""Tests for selection rule parsing and goal construction."""

from __future__ import annotations

import pytest

from nisq_analyzer.errors import RuleSyntaxError, UnboundParameterError
from nisq_analyzer.rules.syntax import (
    build_goal,
    format_value,
    free_variables,
    is_variable,
    parse_rule,
    quote_atom,
)


class TestParseRule:
    """Tests for parse_rule."""

    def test_single_clause(self) -> None:
        parsed = parse_rule("executable(N, shor_general_qiskit) :- N > 2, N =< 32.")

        assert parsed.name == "executable"
        assert parsed.signature == ("N", "shor_general_qiskit")
        assert parsed.arity == 2
        assert parsed.variables == frozenset({"N"})
        assert parsed.clauses == ("executable(N, shor_general_qiskit) :- N > 2, N =< 32",)

    def test_multiple_clauses_union_variables(self) -> None:
        parsed = parse_rule(
            "fits(A, _) :- A > 1.\n"
            "fits(_, B) :- B > 1.\n"
        )

        assert len(parsed.clauses) == 2
        assert parsed.variables == frozenset({"A", "B"})

    def test_fact_without_body(self) -> None:
        parsed = parse_rule("always.")
        assert parsed.signature == ()
        assert parsed.variables == frozenset()

    def test_comments_dropped(self) -> None:
        parsed = parse_rule(
            "% small inputs only\n"
            "executable(N) :- /* inclusive */ N =< 15.  % trailing\n"
        )
        assert parsed.clauses == ("executable(N) :-  N =< 15",)

    def test_decimal_point_is_not_clause_end(self) -> None:
        parsed = parse_rule("ok(T) :- T < 1.5.")
        assert parsed.clauses == ("ok(T) :- T < 1.5",)

    def test_quoted_full_stop(self) -> None:
        parsed = parse_rule("label(X) :- X == 'a. b'.")
        assert len(parsed.clauses) == 1

    def test_program_normalised(self) -> None:
        parsed = parse_rule("a(X) :- X > 1.   a(X) :- X < 0.")
        assert parsed.program == "a(X) :- X > 1.\na(X) :- X < 0.\n"

    @pytest.mark.parametrize(
        "rule",
        [
            "",
            "   ",
            "executable(N) :- N > 2",
            "executable(N :- N > 2.",
            "executable(N)) :- N > 2.",
            "Executable(N) :- N > 2.",
            "executable(N,) :- true.",
            "executable(N) :- X = 'open.",
            "executable(N) :- /* never closed",
            "a(X) :- X > 1. b(X) :- X > 1.",
            "a(X) :- X > 1. a(X, Y) :- X > Y.",
        ],
    )
    def test_malformed(self, rule: str) -> None:
        with pytest.raises(RuleSyntaxError):
            parse_rule(rule)

    def test_error_carries_rule(self) -> None:
        with pytest.raises(RuleSyntaxError) as exc:
            parse_rule("broken(")
        assert exc.value.rule == "broken("


class TestFreeVariables:
    """Tests for free_variables."""

    def test_head_variables_only(self) -> None:
        rule = "executable(N, Depth) :- Tmp is N * 2, Tmp < Depth."
        assert free_variables(rule) == {"N", "Depth"}

    def test_anonymous_and_atoms_excluded(self) -> None:
        assert free_variables("r(_, _Skip, fixed, X) :- X > 0.") == {"X"}

    def test_variables_inside_compound_arguments(self) -> None:
        rule = "executable(f(N), range(Lo, Hi), foo) :- N > Lo, N < Hi."
        assert free_variables(rule) == {"N", "Lo", "Hi"}

    def test_quoted_text_and_numbers_ignored(self) -> None:
        rule = "r(pair('Name', X), 1E5, \"Str\") :- X > 0."
        assert free_variables(rule) == {"X"}

    def test_syntax_error_propagates(self) -> None:
        with pytest.raises(RuleSyntaxError):
            free_variables("not a rule")


class TestTerms:
    """Tests for term rendering helpers."""

    @pytest.mark.parametrize(
        ("term", "expected"),
        [("N", True), ("NQubits", True), ("_", False), ("_N", False), ("n", False), ("3", False)],
    )
    def test_is_variable(self, term: str, expected: bool) -> None:
        assert is_variable(term) is expected

    def test_quote_atom_escapes(self) -> None:
        assert quote_atom("it's") == "'it\\'s'"
        assert quote_atom("a\\b") == "'a\\\\b'"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("15", "15"),
            (" 15 ", "15"),
            ("+7", "7"),
            ("-3", "-3"),
            ("0.25", "0.25"),
            ("1e3", "1e3"),
            ("ibmq_lima", "'ibmq_lima'"),
            ("15 qubits", "'15 qubits'"),
        ],
    )
    def test_format_value(self, value: str, expected: str) -> None:
        assert format_value(value) == expected


class TestBuildGoal:
    """Tests for build_goal."""

    def test_substitutes_bound_variables(self) -> None:
        parsed = parse_rule("executable(N, shor) :- N > 2.")
        assert build_goal(parsed, {"N": "15"}) == "executable(15, shor)"

    def test_extra_binding_entries_ignored(self) -> None:
        parsed = parse_rule("executable(N) :- N > 2.")
        assert build_goal(parsed, {"N": "4", "Other": "x"}) == "executable(4)"

    def test_string_value_quoted(self) -> None:
        parsed = parse_rule("on(Backend) :- Backend == ibmq_lima.")
        assert build_goal(parsed, {"Backend": "ibmq_lima"}) == "on('ibmq_lima')"

    def test_substitutes_inside_compound_arguments(self) -> None:
        parsed = parse_rule("executable(f(N), 'N', shor) :- N > 2.")
        assert build_goal(parsed, {"N": "15"}) == "executable(f(15), 'N', shor)"

    def test_negative_value_nested_in_expression(self) -> None:
        parsed = parse_rule("r(X-N) :- true.")
        assert build_goal(parsed, {"X": "1", "N": "-3"}) == "r(1-(-3))"

    def test_nested_variable_unbound(self) -> None:
        parsed = parse_rule("executable(f(N), foo) :- N > 2.")
        with pytest.raises(UnboundParameterError) as exc:
            build_goal(parsed, {})
        assert exc.value.names == ("N",)

    def test_nullary(self) -> None:
        assert build_goal(parse_rule("always."), {}) == "always"

    def test_unbound(self) -> None:
        parsed = parse_rule("executable(N, M) :- N > M.")
        with pytest.raises(UnboundParameterError) as exc:
            build_goal(parsed, {"N": "4"})
        assert exc.value.names == ("M",)
