"""
Vitrine Backend — Application Package Initializer
=================================================

What: Marks the `vitrine` directory as a Python package.
Who:  Imported by uvicorn, Alembic and pytest.

Architecture Note:
    The backend keeps a layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (ItemService, Visits)    │  ← Ordering across the two stores
    ├─────────────────────────────────────┤
    │  BlobStore        │   RecordStore   │  ← Remote object store / SQL tables
    └─────────────────────────────────────┘

    Item images live in the blob store, item metadata and the visit counter
    live in the relational store. The two are never covered by one
    transaction; the service layer owns the ordering between them.
"""

__version__ = "1.0.0"
