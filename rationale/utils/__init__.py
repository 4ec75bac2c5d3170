"""
Rationale utilities -- Cross-cutting concerns
"""

from .pagination import Paginator, add_pagination_args

__all__ = ['Paginator', 'add_pagination_args']
