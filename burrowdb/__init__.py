"""Storage back end for a small database: transactions, caches, pages and the log file."""

__version__ = "0.1.0"
__all__ = ["cache", "errors", "logger", "page", "page_cache", "transactions"]