"""
Stateless orchestration for community operations.

Each pipeline runs one primary operation, then best-effort side effects
whose failures are logged and never undo or fail the primary write.
"""
