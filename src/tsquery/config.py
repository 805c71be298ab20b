TRACE_LOGGING = False
"""Enables verbose debug logging of parsing internals.

Off by default, since it is noisy and slows down parsing.

"""

MAX_NESTING_DEPTH = 100
"""Maximum nesting of groups, alternations and fields in a single pattern.

Parsing is recursive, so this keeps pathological input from exhausting the
interpreter stack.

"""
