"""
Campus Tasker Backend - API Routes Package
==========================================

Route Inventory:
    - auth.py:          /api/auth/signup, /signin, /signout, /me
    - users.py:         /api/users/{id}, /rating, /tasks
    - tasks.py:         /api/tasks (+ /posted, /assigned, /{id}, lifecycle actions)
    - reviews.py:       /api/tasks/{id}/reviews, /api/users/{id}/reviews
    - transactions.py:  /api/transactions
    - health.py:        /health

Routes stay thin: parse the request, resolve the caller, call one service
method, set headers. Rules live in the services.
"""
