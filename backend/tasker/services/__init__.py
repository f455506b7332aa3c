# Services package init
"""
Campus Tasker Backend - Services Layer
======================================

What:  Business logic between the routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level singleton.
       Methods take the AsyncSession and the caller's UserProfile, check
       tasker.policies, and return pydantic response models. The request's
       transaction is committed or rolled back by get_db_session.

Service Inventory:
    - AuthService: sign-up, sign-in, sign-out, session token resolution
    - ProfileService: profile read / edit, rating aggregate
    - TaskService: task CRUD and the accept / complete / unassign lifecycle
    - ReviewService: reviews between the participants of a completed task
    - TransactionService: the caller's wallet ledger
"""
