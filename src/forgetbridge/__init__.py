"""
forget-bridge: verifies right-to-erasure webhook notifications and deletes
the named user's entries from external DataStores.
"""

__version__ = "0.1.0"
