"""Newsletter subscription service.

Hexagonal layout: ``domain`` holds entities and rules, ``ports`` the
interfaces, ``application`` the use cases and ``infrastructure`` the adapters
(SQL store, configuration, logging, HTTP transport).
"""

__version__ = "0.1.0"
