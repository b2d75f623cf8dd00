#Marks services as a package: the remote backend boundary.
#RoutesClient talks HTTP; RemoteRouteMutations bridges it to the async store.
#No assignment logic.

from .routes_client import RoutesClient, RoutesAPIError, parse_route_rows, route_letter
from .mutations import RemoteRouteMutations

__all__ = [
    "RoutesClient",
    "RoutesAPIError",
    "parse_route_rows",
    "route_letter",
    "RemoteRouteMutations",
]
