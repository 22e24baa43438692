from .shared_trips import RpcSharedTripStore, SqlSharedTripStore, get_shared_trip_store
from . import models

__all__ = ["RpcSharedTripStore", "SqlSharedTripStore", "get_shared_trip_store", "models"]
