"""
Grammable — Services Package
==============================

What:  Business logic, independent of HTTP.

Service Inventory:
    - gram_service.py:  gram lookup, ownership checks, create/update/destroy
    - auth_service.py:  password hashing, session tokens, sign-up / sign-in
    - file_service.py:  picture validation, storage and removal
    - validation.py:    pre-persistence attribute validation (field errors)
"""
