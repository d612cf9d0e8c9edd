from .base import BasePage, PageObject
from .todo import TodoPage
from .url import resolve_url, append_subdomain, join_url

__all__ = [
    'BasePage',
    'PageObject',
    'TodoPage',
    'resolve_url',
    'append_subdomain',
    'join_url',
]
