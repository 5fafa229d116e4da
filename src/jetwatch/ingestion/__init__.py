"""Ingestion paths.

The push channel and the reconciliation poller both convert their inputs
into :class:`jetwatch.models.Flight` records and hand them to the state
store. Neither path mutates the store any other way.
"""
