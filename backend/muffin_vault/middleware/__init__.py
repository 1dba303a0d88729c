# Middleware package init
"""
Muffin Vault Backend — Middleware Package
==========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    1. Request ID first, so every later log line can be correlated
    2. Access log measures the full handling time, status included
    3. GZip / CORS are Starlette's stock middleware (added in main.py)
"""
