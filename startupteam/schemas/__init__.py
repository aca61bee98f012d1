"""
Schemas module - Request/Response schemas for API endpoints.

Services work on plain dicts straight from MongoDB; schemas are the API
contract (what the client sends and receives). All of them live in
schemas.py.
"""
