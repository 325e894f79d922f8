"""Cross-cutting building blocks shared by the crawler, table and services layers.

Sub-modules:
- ``exceptions``:     exception hierarchy and :class:`ErrorKind`
- ``logging_config``: structlog configuration
- ``http``:           backend request dispatch with error mapping
- ``credentials``:    cookie session and its persistence collaborator
- ``progress``:       append-only progress log for crawl runs
"""
