"""Application package for the exam preparation study tracker.

This package exposes the service, repository and model modules used by
the FastAPI application. Individual modules contain the concrete
implementations and documentation; `main.create_app` builds the app.
"""
