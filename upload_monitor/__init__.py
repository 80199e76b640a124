"""Upload Monitor — watches a folder and uploads finished statement files.

Files whose names follow the ``ABC__...`` convention are uploaded once
their size and modification time have stopped changing.
"""

__version__ = "1.0.0"
__app_name__ = "Upload Monitor"
