"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in schemas.py:
- Request schemas (what the API accepts)
- Response schemas (what the API returns)
"""
