"""
Service layer.

Each service encapsulates the business logic for a domain and talks to
the database only through ``core.store.Store``.  The course and review
services call the aggregate service after every successful mutation;
list endpoints go through ``query_compiler``.
"""
