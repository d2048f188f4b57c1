"""Celery tasks for the sync worker."""
