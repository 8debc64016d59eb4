"""SQL statement screening using keyword and pattern matching.

Checks run in a fixed order and stop at the first failure:
- type / emptiness
- dangerous keyword blacklist (substring match, case-insensitive)
- operation allowlist (SELECT, INSERT, UPDATE, DELETE)
- injection heuristics (UNION SELECT, stacked writes, comments, tautologies)
"""
import re
from enum import Enum
from typing import Any, Optional
from dataclasses import dataclass

MAX_PARAMS = 100


class OperationKind(str, Enum):
    """Operation kinds the gateway recognizes."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UNKNOWN = "unknown"


ALLOWED_OPERATIONS: frozenset[OperationKind] = frozenset(
    {
        OperationKind.SELECT,
        OperationKind.INSERT,
        OperationKind.UPDATE,
        OperationKind.DELETE,
    }
)

# Checked in order; the first hit names the rejection reason.
DANGEROUS_KEYWORDS: tuple[str, ...] = (
    "drop table",
    "drop database",
    "truncate",
    "alter table",
    "create database",
    "drop index",
    "create user",
    "drop user",
    "grant",
    "revoke",
    "load_file",
    "into outfile",
    "into dumpfile",
    "exec",
    "execute",
    "sp_",
    "xp_",
)

INJECTION_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("union select", re.compile(r"union\s+select", re.IGNORECASE)),
    (
        "stacked write statement",
        re.compile(r";\s*(drop|delete|update|insert)", re.IGNORECASE),
    ),
    ("trailing comment", re.compile(r"--\s*$")),
    ("block comment", re.compile(r"/\*.*?\*/", re.DOTALL)),
    ("quoted tautology", re.compile(r"'.*?'.*?or.*?'.*?'=", re.IGNORECASE)),
    (
        "double-quoted tautology",
        re.compile(r'".*?".*?or.*?".*?"=', re.IGNORECASE),
    ),
)

_LEADING_OPERATION = re.compile(r"(select|insert|update|delete)\b")


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of screening a statement or a parameter list."""

    admissible: bool
    operation: OperationKind = OperationKind.UNKNOWN
    reason: Optional[str] = None


def classify_operation(sql: str) -> OperationKind:
    """Classify a statement by its leading keyword."""
    match = _LEADING_OPERATION.match(sql.lower().strip())
    if not match:
        return OperationKind.UNKNOWN
    return OperationKind(match.group(1))


class SQLValidator:
    """Screens statements and parameters against the gateway safety policy.

    Stateless: every method is a pure function of its arguments, so one
    instance can be shared by concurrent requests.
    """

    def validate(self, sql: Any) -> ValidationVerdict:
        """Screen a single statement. Checks run on a normalized copy; the
        statement itself is executed as given.
        """
        if not isinstance(sql, str) or not sql.strip():
            return ValidationVerdict(
                admissible=False,
                reason="SQL statement must be a non-empty string",
            )

        normalized = sql.lower().strip()

        for keyword in DANGEROUS_KEYWORDS:
            if keyword in normalized:
                return ValidationVerdict(
                    admissible=False,
                    reason=f"Dangerous operation detected: {keyword}",
                )

        operation = classify_operation(normalized)
        if operation not in ALLOWED_OPERATIONS:
            return ValidationVerdict(
                admissible=False,
                operation=operation,
                reason=f"Unsupported operation type: {operation.value}",
            )

        for name, pattern in INJECTION_PATTERNS:
            if pattern.search(normalized):
                return ValidationVerdict(
                    admissible=False,
                    operation=operation,
                    reason=f"Potential SQL injection detected ({name})",
                )

        return ValidationVerdict(admissible=True, operation=operation)

    def validate_params(self, params: Any) -> ValidationVerdict:
        """Screen the shape of a positional parameter list.

        Values themselves are not inspected; positional binding keeps them
        out of the statement text.
        """
        if not isinstance(params, (list, tuple)):
            return ValidationVerdict(
                admissible=False, reason="Parameters must be an array"
            )
        if len(params) > MAX_PARAMS:
            return ValidationVerdict(
                admissible=False,
                reason=f"Parameter count must not exceed {MAX_PARAMS}",
            )
        return ValidationVerdict(admissible=True)

    def check(self, sql: Any, params: Any = ()) -> ValidationVerdict:
        """Screen a statement and its parameters together.

        Returns the statement verdict (carrying the operation kind) when both
        pass, otherwise the first rejection.
        """
        verdict = self.validate(sql)
        if not verdict.admissible:
            return verdict
        params_verdict = self.validate_params(params)
        if not params_verdict.admissible:
            return ValidationVerdict(
                admissible=False,
                operation=verdict.operation,
                reason=params_verdict.reason,
            )
        return verdict
