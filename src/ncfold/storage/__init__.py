from ncfold.storage._memory import MemoryStore
from ncfold.storage._netcdf import NetCDFStore

__all__ = [
    "MemoryStore",
    "NetCDFStore",
]
