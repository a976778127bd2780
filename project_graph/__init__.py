"""project-graph: compact, queryable code intelligence for JS/TS projects."""

__version__ = "0.4.0"
