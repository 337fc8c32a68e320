"""
Survey Platform

Backend for environment-scoped survey targeting: people and their
attributes, tracked actions, webhooks, team access checks and a
tag-invalidated service cache in front of the database.
"""

__version__ = "1.0.0"
