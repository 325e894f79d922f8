"""rednote-sync: crawl a RedNote (Xiaohongshu) post into a bitable row.

Sub-packages:
- ``config``:   pydantic-settings backed configuration
- ``core``:     exceptions, logging, credential session, progress log
- ``crawler``:  remote job client, completion poller, artifact resolver
- ``table``:    host-table interface, cell normalization, field reconciler
- ``services``: pass-through clients for the auxiliary backend endpoints
"""

__version__ = "0.3.0"
