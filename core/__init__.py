"""Core module - configuration and observability shared by the API and connectors.

ERP-specific logic (SAP SOAP adapter) belongs in /connectors/.
"""

__version__ = "1.0.0"
