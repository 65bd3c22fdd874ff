"""Core module - ERP-neutral infrastructure.

This module contains cross-cutting components shared by every connector,
such as structured logging. It is intentionally ERP-agnostic.

ERP-specific logic (NetSuite, ...) belongs in /connectors/.
"""

__version__ = "1.0.0"
