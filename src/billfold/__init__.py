"""Local HTTP backend for a household budget tracker."""

__version__ = "0.1.0"

from billfold.app import Billfold
from billfold.request import Request
from billfold.response import JSONResponse, Response
from billfold.routing import Route, Router, RouteTable, match_path

__all__ = [
    "Billfold",
    "JSONResponse",
    "Request",
    "Response",
    "Route",
    "RouteTable",
    "Router",
    "match_path",
]
