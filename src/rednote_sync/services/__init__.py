"""Pass-through clients for the auxiliary backend services.

Sub-modules:
- ``schemas``:   pydantic request bodies with panel defaults
- ``backend``:   :class:`BackendServicesClient`
- ``timerange``: user-entered time bound parsing
"""
