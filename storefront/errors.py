class StorefrontError(Exception):
    """Base class for storefront core errors."""


class ConfigurationError(StorefrontError):
    """No tenant id could be determined; the app has to be configured first."""


class NetworkError(StorefrontError):
    """A fetch or connect against the backend failed."""


class MalformedResponseError(NetworkError):
    """The backend answered, but not with the JSON shape we expect."""


class NotFoundError(StorefrontError, KeyError):
    """A store operation referenced an item id that is not present."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return Exception.__str__(self)
