"""
Infrastructure layer - external system integrations.
Keeps workflow logic clean from transport details.
"""

from .relay import NotificationRelay, ConnectionState

__all__ = ['NotificationRelay', 'ConnectionState']
