from .client import ApiClient, ApiValidator, ApiDataBuilder

__all__ = ['ApiClient', 'ApiValidator', 'ApiDataBuilder']
