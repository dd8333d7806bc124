"""
HTTP API for pugstats.

Usage:
    uvicorn pugstats.api.main:create_app --factory
"""
