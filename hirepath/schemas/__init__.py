"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in schemas.py:
- Request schemas (what the API accepts, camelCase on the wire)
- Response schemas (what the API returns)
"""
