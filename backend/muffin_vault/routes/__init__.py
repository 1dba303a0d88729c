# Routes package init
"""
Muffin Vault Backend — API Routes Package
==========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - muffins.py: GET  /api/muffins            (balance and high score)
                  POST /api/muffins/update     (partial update)
    - notes.py:   GET  /api/notes/available    (count of hidden notes)
                  POST /api/notes/buy          (purchase a random note)
                  GET  /api/notes/vault        (purchased notes, newest first)
    - health.py:  GET  /health                 (service health check)

Routes stay thin: pull data out of the request, call a service, return its
response model. Error translation happens in the global handlers.
"""
