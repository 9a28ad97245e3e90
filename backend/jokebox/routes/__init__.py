# Routes package init
"""
Jokebox Backend: API Routes Package
====================================

Route Inventory:
    - jokes.py:   /jokes, /jokes/random, /jokes/new, /jokes/{joke_id}
    - auth.py:    POST /login, POST /logout
    - health.py:  GET /health

Routes stay thin: extract identity and form data, call a service, turn the
result into a response. Business rules live in services.
"""
