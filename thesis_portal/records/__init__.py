"""
Records Package

Store client, change notifications, the filter/sort/export engine and the
per-page records view.
"""
