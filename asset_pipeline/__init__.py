"""
Asset Pipeline Backend: root package.

This package contains the FastAPI app entry point (main.py), API routes,
domain logic, infrastructure (DB, analysis client, notifications), and the
asynchronous asset processing pipeline (job queue + worker pool).
"""
