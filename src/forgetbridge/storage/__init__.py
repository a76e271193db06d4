"""
Persistence for rules (read side) and the deletion audit trail (write side).

Keep import side-effect free.
"""
