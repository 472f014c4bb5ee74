"""Routing error kinds."""


class RouteError(Exception):
    """A routing query failed. Never fatal to the route being built."""
    pass


class RouteNotFound(RouteError):
    """The routing service answered but found no walking route"""
    pass


class ServiceUnavailable(RouteError):
    """The routing service or its map data could not be reached"""
    pass
