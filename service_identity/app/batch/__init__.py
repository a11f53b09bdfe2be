"""
Batch account operations.

Each batch call makes exactly one directory round trip; everything here is
the local work before (argument checks) and after (result shaping) it.
Per-item failures are reported in the result, never raised.
"""
