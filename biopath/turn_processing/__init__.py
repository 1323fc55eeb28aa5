"""Command precondition checks.

Every player command flows through the same validator pipeline so rejected
commands show up consistently in the debug log.
"""
