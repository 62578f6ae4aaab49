"""Error taxonomy for remote fetches and local persistence."""

_SERVICE_UNAVAILABLE = 503


class FetchError(RuntimeError):
    """Raised when the remote user source cannot deliver a batch."""

    kind = "unknown"
    retryable = False

    @property
    def network_related(self) -> bool:
        """Whether the failure should be presented as a connectivity problem."""
        return self.retryable


class NetworkUnreachable(FetchError):
    """The device is offline or the connection was lost mid-request."""

    kind = "network_unreachable"
    retryable = True

    def __init__(self, message: str = "Network error: check your connection") -> None:
        super().__init__(message)


class FetchTimeout(FetchError):
    """The request did not complete in time."""

    kind = "timeout"
    retryable = True

    def __init__(self, message: str = "The request timed out") -> None:
        super().__init__(message)


class HostUnreachable(FetchError):
    """The server could not be addressed."""

    kind = "unreachable"

    def __init__(self, message: str = "Cannot connect to the server") -> None:
        super().__init__(message)

    @property
    def network_related(self) -> bool:
        return True


class ServerError(FetchError):
    """The server answered with a non-success status code."""

    kind = "server_error"

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server error: status {status_code}")
        self.status_code = status_code

    @property
    def network_related(self) -> bool:
        return self.status_code == _SERVICE_UNAVAILABLE


class DecodeError(FetchError):
    """The response body could not be decoded into user records."""

    kind = "decode_error"

    def __init__(self, message: str = "Failed to decode the response") -> None:
        super().__init__(message)


class UnknownFetchError(FetchError):
    """Any other failure while fetching users."""

    kind = "unknown"

    def __init__(self, message: str) -> None:
        super().__init__(f"Unknown error: {message}")
        self.detail = message


class StorageError(RuntimeError):
    """Raised when the local user store fails."""

    kind = "storage_error"


class UserNotFound(StorageError):
    """No stored user carries the requested id."""

    kind = "user_not_found"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class UnknownStorageError(StorageError):
    """The storage backend failed for an unclassified reason."""

    kind = "storage_unknown"


class StorageDecodingError(StorageError):
    """A stored row could not be turned back into a user record."""

    kind = "storage_decoding"


class StorageEncodingError(StorageError):
    """A user record could not be encoded for storage."""

    kind = "storage_encoding"
