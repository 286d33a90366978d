"""Exceptions raised by resolvers."""


class ResolutionError(Exception):
    """A name could not be resolved to any target."""


class InvalidQueryTypeError(ResolutionError):
    """The query type prefix of an address is not supported."""


class LookupCancelledError(ResolutionError):
    """The lookup was abandoned because the refresh deadline expired."""
