"""Test the statement safety policy: blacklist, operation allowlist,
injection heuristics and parameter shape checks."""
import pytest
from sqlgate.safety.sql_guard import (
    DANGEROUS_KEYWORDS,
    INJECTION_PATTERNS,
    MAX_PARAMS,
    OperationKind,
    SQLValidator,
    ValidationVerdict,
    classify_operation,
)


@pytest.fixture
def validator():
    return SQLValidator()


# ── Type / Emptiness ──────────────────────────────────────────────────

class TestEmptyOrWrongType:

    @pytest.mark.parametrize("sql", [None, "", "   ", "\n\t", 42, b"SELECT 1", ["SELECT 1"]])
    def test_rejected(self, validator, sql):
        verdict = validator.validate(sql)
        assert verdict.admissible is False
        assert verdict.reason == "SQL statement must be a non-empty string"
        assert verdict.operation == OperationKind.UNKNOWN


# ── Dangerous Keyword Blacklist ───────────────────────────────────────

class TestBlacklist:

    @pytest.mark.parametrize("sql,keyword", [
        ("DROP TABLE users", "drop table"),
        ("drop database prod", "drop database"),
        ("TRUNCATE users", "truncate"),
        ("ALTER TABLE users ADD COLUMN age int", "alter table"),
        ("CREATE DATABASE shadow", "create database"),
        ("DROP INDEX idx_users_name", "drop index"),
        ("CREATE USER mallory", "create user"),
        ("DROP USER alice", "drop user"),
        ("GRANT ALL ON users TO mallory", "grant"),
        ("REVOKE SELECT ON users FROM bob", "revoke"),
        ("SELECT load_file('/etc/passwd')", "load_file"),
        ("SELECT * FROM users INTO OUTFILE '/tmp/x'", "into outfile"),
        ("SELECT * FROM users INTO DUMPFILE '/tmp/x'", "into dumpfile"),
        ("EXEC sp_who", "exec"),
        ("SELECT xp_cmdshell('dir')", "xp_"),
        ("SELECT sp_helpdb()", "sp_"),
    ])
    def test_keyword_rejected(self, validator, sql, keyword):
        verdict = validator.validate(sql)
        assert verdict.admissible is False
        assert verdict.reason == f"Dangerous operation detected: {keyword}"

    def test_match_is_case_insensitive(self, validator):
        verdict = validator.validate("DrOp TaBlE users")
        assert verdict.admissible is False
        assert "drop table" in verdict.reason

    def test_match_anywhere_in_statement(self, validator):
        verdict = validator.validate(
            "SELECT * FROM notes WHERE body = 'please grant access'"
        )
        assert verdict.admissible is False
        assert "grant" in verdict.reason

    def test_first_listed_keyword_names_the_reason(self, validator):
        # 'exec' is listed before 'execute' and is a substring of it
        verdict = validator.validate("EXECUTE my_plan")
        assert verdict.reason == "Dangerous operation detected: exec"

    @pytest.mark.parametrize("keyword", DANGEROUS_KEYWORDS)
    def test_every_keyword_blocks_otherwise_valid_select(self, validator, keyword):
        verdict = validator.validate(f"SELECT 1 FROM t WHERE note = '{keyword}'")
        assert verdict.admissible is False
        assert verdict.reason.startswith("Dangerous operation detected: ")

    def test_policy_data_is_immutable(self):
        assert isinstance(DANGEROUS_KEYWORDS, tuple)
        assert isinstance(INJECTION_PATTERNS, tuple)


# ── Operation Allowlist ───────────────────────────────────────────────

class TestOperationClassification:

    @pytest.mark.parametrize("sql,expected", [
        ("SELECT 1", OperationKind.SELECT),
        ("  select * from users", OperationKind.SELECT),
        ("INSERT INTO t (v) VALUES (?)", OperationKind.INSERT),
        ("UPDATE users SET name = ? WHERE id = ?", OperationKind.UPDATE),
        ("DELETE FROM users WHERE id = ?", OperationKind.DELETE),
        ("SELECT(1)", OperationKind.SELECT),
        ("selection FROM t", OperationKind.UNKNOWN),
        ("SHOW TABLES", OperationKind.UNKNOWN),
        ("WITH x AS (SELECT 1) SELECT * FROM x", OperationKind.UNKNOWN),
    ])
    def test_classify(self, sql, expected):
        assert classify_operation(sql) == expected

    @pytest.mark.parametrize("sql", [
        "SHOW TABLES",
        "CREATE TABLE t (id int)",
        "DROP VIEW v",
        "CALL refresh_stats()",
        "BEGIN",
        "COMMIT",
        "SET search_path TO public",
        "VACUUM users",
        "WITH x AS (SELECT 1) SELECT * FROM x",
    ])
    def test_unsupported_operation_rejected(self, validator, sql):
        verdict = validator.validate(sql)
        assert verdict.admissible is False
        assert verdict.reason == "Unsupported operation type: unknown"
        assert verdict.operation == OperationKind.UNKNOWN

    @pytest.mark.parametrize("sql,expected", [
        ("SELECT 1 AS x", OperationKind.SELECT),
        ("INSERT INTO t (v) VALUES (?)", OperationKind.INSERT),
        ("UPDATE users SET name = 'bob' WHERE id = 1", OperationKind.UPDATE),
        ("DELETE FROM users WHERE id = 1", OperationKind.DELETE),
    ])
    def test_allowed_operation_carries_kind(self, validator, sql, expected):
        verdict = validator.validate(sql)
        assert verdict.admissible is True
        assert verdict.operation == expected
        assert verdict.reason is None


# ── Injection Heuristics ──────────────────────────────────────────────

class TestInjectionPatterns:

    @pytest.mark.parametrize("sql,pattern", [
        ("SELECT name FROM users UNION SELECT password FROM admins", "union select"),
        ("SELECT * FROM a; DELETE FROM a", "stacked write statement"),
        ("SELECT * FROM a;insert into a values (1)", "stacked write statement"),
        ("SELECT * FROM users WHERE id = 1 --", "trailing comment"),
        ("SELECT /* hidden */ * FROM users", "block comment"),
        ("SELECT * FROM users /* multi\nline */", "block comment"),
        ("SELECT * FROM users WHERE name = '' OR '1'='1'", "quoted tautology"),
        ('SELECT * FROM users WHERE name = "" OR "1"="1"', "double-quoted tautology"),
    ])
    def test_pattern_rejected(self, validator, sql, pattern):
        verdict = validator.validate(sql)
        assert verdict.admissible is False
        assert verdict.reason == f"Potential SQL injection detected ({pattern})"

    def test_injection_verdict_keeps_operation(self, validator):
        verdict = validator.validate("SELECT * FROM a; DELETE FROM a")
        assert verdict.operation == OperationKind.SELECT

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM users WHERE name = ?",
        "SELECT * FROM users WHERE name = 'alice'",
        "SELECT id FROM a UNION ALL SELECT id FROM b WHERE x = 1",
        "UPDATE users SET score = score - 1 WHERE id = ?",
    ])
    def test_benign_statements_pass(self, validator, sql):
        # UNION ALL SELECT does not match 'union\s+select'
        verdict = validator.validate(sql)
        assert verdict.admissible is True


# ── Parameters ────────────────────────────────────────────────────────

class TestParams:

    @pytest.mark.parametrize("params", [[], (), [1, "a", None, True, 2.5]])
    def test_sequences_accepted(self, validator, params):
        assert validator.validate_params(params).admissible is True

    @pytest.mark.parametrize("params", [{"a": 1}, "abc", 5, None, {1, 2}])
    def test_non_sequences_rejected(self, validator, params):
        verdict = validator.validate_params(params)
        assert verdict.admissible is False
        assert verdict.reason == "Parameters must be an array"

    def test_limit_is_inclusive(self, validator):
        assert validator.validate_params([0] * MAX_PARAMS).admissible is True

    def test_over_limit_rejected(self, validator):
        verdict = validator.validate_params([0] * (MAX_PARAMS + 1))
        assert verdict.admissible is False
        assert verdict.reason == "Parameter count must not exceed 100"

    def test_values_are_not_inspected(self, validator):
        verdict = validator.validate_params(["'; DROP TABLE users; --"])
        assert verdict.admissible is True


# ── Composition / Purity ──────────────────────────────────────────────

class TestCheck:

    def test_check_returns_statement_verdict(self, validator):
        verdict = validator.check("INSERT INTO t (v) VALUES (?)", [5])
        assert verdict == ValidationVerdict(True, OperationKind.INSERT)

    def test_check_statement_rejection_first(self, validator):
        verdict = validator.check("DROP TABLE users", [0] * 500)
        assert "drop table" in verdict.reason

    def test_check_params_rejection(self, validator):
        verdict = validator.check("SELECT 1", [0] * 101)
        assert verdict.admissible is False
        assert verdict.operation == OperationKind.SELECT
        assert "100" in verdict.reason

    @pytest.mark.parametrize("sql", [
        "SELECT 1",
        "DROP TABLE users",
        "SHOW TABLES",
        "SELECT * FROM a; DELETE FROM a",
    ])
    def test_validation_is_idempotent(self, validator, sql):
        assert validator.validate(sql) == validator.validate(sql)
        assert validator.validate(sql) == SQLValidator().validate(sql)

    def test_verdict_is_immutable(self, validator):
        verdict = validator.validate("SELECT 1")
        with pytest.raises(AttributeError):
            verdict.admissible = False
