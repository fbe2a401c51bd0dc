# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Selection rules and QPU suitability, backed by Prolog.

- :mod:`~nisq_analyzer.rules.syntax` - clause parsing and goal building
- :mod:`~nisq_analyzer.rules.backend` - SWI-Prolog subprocess backend
- :mod:`~nisq_analyzer.rules.knowledge` - catalogue facts and capacity rule
- :mod:`~nisq_analyzer.rules.engine` - the adapter used by the control service
"""

from __future__ import annotations

from nisq_analyzer.rules.backend import PrologBackend, SwiplBackend
from nisq_analyzer.rules.engine import PrologRuleEngine, RuleEngineProtocol
from nisq_analyzer.rules.knowledge import KnowledgeBase
from nisq_analyzer.rules.syntax import ParsedRule, free_variables, parse_rule


__all__ = [
    "KnowledgeBase",
    "ParsedRule",
    "PrologBackend",
    "PrologRuleEngine",
    "RuleEngineProtocol",
    "SwiplBackend",
    "free_variables",
    "parse_rule",
]
