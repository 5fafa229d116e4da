"""State layer.

This package is the single source of truth for what the console currently
believes: the per-flight store fed by both the push channel and the
reconciliation poller, plus the rolling activity log.
"""
