"""
Shared utilities and infrastructure components: settings-aware database
management, structured logging and the domain exception hierarchy.
"""
