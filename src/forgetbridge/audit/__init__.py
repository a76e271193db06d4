"""
Read-only audit API (deletion history and error log).
"""
