"""Celery worker that runs the scheduled catalog sync."""
