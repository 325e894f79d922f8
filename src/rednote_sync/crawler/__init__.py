"""Crawler backend integration.

Sub-modules:
- ``config``:    endpoints, timeouts and naming conventions
- ``models``:    request, status, artifact and record value types
- ``client``:    :class:`CrawlerClient` (start / status)
- ``poller``:    :class:`CompletionPoller` with a fixed :class:`PollPolicy`
- ``artifacts``: :class:`ArtifactResolver` (list / select / fetch / match)
"""
