from .serper_search import SerperSourceSearcher, SERPER_API_URL

__all__ = ["SerperSourceSearcher", "SERPER_API_URL"]
