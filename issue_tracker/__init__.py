"""FastAPI Issue Tracker Application.

A FastAPI application for tracking issues per project with:
- RESTful list/create/update/delete under /api/issues/{project}
- Loose query and body normalization into document filters
- SQLAlchemy async storage behind a document-style collection
"""
