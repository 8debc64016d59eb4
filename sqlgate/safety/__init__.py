"""Statement safety policy for the SQL gateway.

Lexical, pattern-based screening of statements and their bound parameters
before any database contact. This is a best-effort filter layered on top of
parameterized execution, not a SQL parser.
"""
