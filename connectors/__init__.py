"""ERP Connectors - backend system integrations.

Each ERP lives in its own folder (sap/). A connector handles:
- Request building in the ERP's wire format
- Transport and authentication
- Normalizing responses into portal records

Key Design Principle:
- API routes depend ONLY on the connector's service object
- Service methods return NORMALIZED records (SalesOrder, Invoice, ...)
- No SAP field codes leak past the connector
"""
