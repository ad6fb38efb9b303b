"""
ActionLens - analytics over user action logs.

Answers next-action correlation and referral index queries over an
immutable, in-memory log of user actions.
"""

__version__ = "0.1.0"
