from .check_links import CheckLinksUseCase

__all__ = ["CheckLinksUseCase"]
