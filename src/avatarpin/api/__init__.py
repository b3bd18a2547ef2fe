"""Avatar Pin - FastAPI REST API layer.

Modules
-------
main
    FastAPI application with the three route handlers, the error handlers
    and the ``main()`` CLI entry point.
models
    Pydantic models for API request and response bodies.
"""
