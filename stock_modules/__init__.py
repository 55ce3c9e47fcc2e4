"""
Stock Modules.

Orchestration layer above ``stock_kernel``: document lifecycle and
inventory queries, each owning its transaction boundary.
"""
