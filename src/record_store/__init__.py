"""
Record Store - embedded in-process table manager

Keeps named tables of JSON-compatible records in memory, assigns
auto-increment identifiers, answers filter/sort/paginate queries and
rewrites the whole dataset to a single JSON document after every mutation.
"""

__version__ = "0.1.0"

FORMAT_VERSION = "1.0.0"
