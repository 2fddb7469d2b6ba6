from .filters_controller import FiltersController

__all__ = ['FiltersController']
