"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing workflow logic.
"""

from .notifier import Notifier, Handler
from .null_notifier import NullNotifier

__all__ = ['Notifier', 'Handler', 'NullNotifier']
