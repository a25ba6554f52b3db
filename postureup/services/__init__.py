"""
Services for PostureUp.
"""

from .session import PostureSessionService

__all__ = ['PostureSessionService']
