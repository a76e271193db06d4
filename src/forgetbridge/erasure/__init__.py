"""
Deletion fan-out: key templates, the DataStore client and the dispatcher.

Keep import side-effect free.
"""
