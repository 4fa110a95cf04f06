"""
Monthly roundup pipeline for repository activity.

Deterministically transforms one month of GitHub activity into a public post:
  - Markdown roundup (PR status, issue status, contributors)
  - GitHub Discussion in the target repository's announcements category

Everything is rebuilt from the GraphQL API on every run; nothing is persisted.
"""

__version__ = "0.1.0"
