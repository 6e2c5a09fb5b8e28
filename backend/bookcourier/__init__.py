"""
BookCourier Backend — Application Package
===========================================

REST backend for the BookCourier book-ordering marketplace.

Architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      Authorization gate (auth.py)   │  ← identity, role, ownership
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← one per collection
    ├─────────────────────────────────────┤
    │      Schemas (request/response)     │  ← Pydantic
    ├─────────────────────────────────────┤
    │      Database (MongoDB documents)   │  ← AsyncMongoClient
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
