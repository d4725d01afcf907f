"""TaskFlow Core - project, task and issue tracking with role-gated mutations.

Modules:
- permissions: static role/action permission table
- store: data store interface and in-memory implementation
- sql_store: SQLAlchemy-backed data store
- lifecycle: status flows and derived timestamp stamping
- audit: activity feed writes and reads
- crud: data access layer used by the API
"""

__version__ = "1.0.0"
