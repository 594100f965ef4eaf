"""Deckflow — FastAPI REST API layer.

This package contains the FastAPI application and the Pydantic response
models.

Modules
-------
main
    Application factory, route handlers, error mapping, and the ``main()``
    CLI entry point.
models
    Pydantic models for API responses and OpenAPI documentation.
"""
