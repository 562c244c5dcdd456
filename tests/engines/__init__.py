"""Store-specific tests.

This package contains tests for implementation-specific behavior
that differs between stores, such as:

- Wire format and error mapping (Redis REST, KV REST)
- Lua script and client lifecycle (Redis)
- Startup warning and cleanup (Memory)

See tests/compliance/ for the standardized test suite that all
stores must pass.
"""
