"""Host-table integration.

Sub-modules:
- ``base``:       abstract :class:`HostTable` / :class:`FieldHandle` interface
- ``cells``:      raw cell value normalization (:func:`normalize_cell`)
- ``fields``:     static :data:`AVAILABLE_FIELDS` and type coercion
- ``reconciler``: :class:`FieldReconciler` (create-if-absent, coerce, write)
- ``memory``:     :class:`InMemoryTable` used by the CLI and tests
"""
