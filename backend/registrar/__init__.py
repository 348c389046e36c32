"""Application package for the registrar backend.

This package exposes the service, repository and model modules used by
the FastAPI application that manages students, courses and the
enrollments between them. Individual modules contain the concrete
implementations and documentation.
"""
