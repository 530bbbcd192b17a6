"""Errors raised by collaborators of the request pipeline."""


class ServiceError(Exception):
    """Base class for failures that should surface as a server error."""


class StorageError(ServiceError):
    """The event store could not complete a read or write."""


class UpstreamServiceError(ServiceError):
    """An upstream service was unreachable or answered outside its protocol."""


class UsersServiceError(UpstreamServiceError):
    """The user directory failed for a reason other than an unknown credential."""


class PostsServiceError(UpstreamServiceError):
    """The content service failed for a reason other than a missing post."""
