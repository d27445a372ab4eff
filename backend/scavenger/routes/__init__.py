# Routes package init
"""
Scavenger Hunt Backend - API Routes Package
============================================

What:  Thin HTTP adapters: extract path/query/body, call a service, pick
       the status code. Role checks run as route dependencies.

Route Inventory:
    - auth.py:       POST /auth/login, POST /auth/register
    - users.py:      /users[/{username}[/history]]
    - waypoints.py:  /waypoints[/summary | /{name}[/history]]
    - challenges.py: /challenges[/{id}[/history | /participants[...]]]
    - health.py:     GET /health
"""
