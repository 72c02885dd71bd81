"""
Users Service package for the Users Access Layer.

The service fronts the users collection, providing:
- Cached single-user and paginated list reads
- Inserts and deletes that invalidate the cached ``/users`` namespace
- Ingestion of users, posts and comments from the source API

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.adapters: record store collections and the source API client.
- app.caching: response cache, key policy, background sweeper.
- app.query: list parameter parsing and query descriptors.
- app.domain: directory operations, ingestion, record schemas.
"""
