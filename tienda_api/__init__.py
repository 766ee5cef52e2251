"""Tienda API: users and products over a cloud document store.

Layers:
- core: configuration, logging, errors, token and password security
- domain: pydantic models and the filter compiler
- infrastructure: document store gateway (Firestore / in-memory), repositories, Redis locks
- services: validation and business rules
- api: FastAPI routers and the error boundary
"""
