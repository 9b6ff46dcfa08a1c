# Broker page components
# Pure Python components for server-rendered HTML

from .base import Component
from .auth_page import AuthPage
from .callback_page import CallbackPage

__all__ = [
    "Component",
    "AuthPage",
    "CallbackPage",
]
