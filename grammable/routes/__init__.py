"""
Grammable — API Routes Package
================================

What:  HTTP route handlers.

Route Inventory:
    - grams.py:    /, /grams, /grams/new, /grams/{id}, /grams/{id}/edit
    - users.py:    /users/sign_in, /users/sign_up, /users, /users/sign_out
    - uploads.py:  /uploads/{path}   (stored pictures)
    - health.py:   /health

Routes stay thin: read the request, call a service, pick the status code or
redirect. Business rules live in services/.
"""
