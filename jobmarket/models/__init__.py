from jobmarket.models.base import Base
from jobmarket.models.favorite import Favorite
from jobmarket.models.filter_context import FilterContext
from jobmarket.models.job import Job
from jobmarket.models.saved_filter import SavedFilter

__all__ = [
    "Base",
    "Job",
    "SavedFilter",
    "FilterContext",
    "Favorite",
]
