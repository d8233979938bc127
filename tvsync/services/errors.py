"""
Sync error taxonomy

Every failure of a sync or reachability call is one of these. They are local
to a single call and are converted to published state by the sync manager.
"""


class SyncError(Exception):
    """Base class for failures of a single sync call"""
    code = "SYNC_FAILED"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidURLError(SyncError):
    """Raised when the server URL does not produce a usable request URL"""
    code = "INVALID_URL"

    def __init__(self, message: str = "Invalid URL constructed"):
        super().__init__(message)


class NetworkError(SyncError):
    """Raised when the request fails at the transport level"""
    code = "NETWORK_ERROR"

    def __init__(self, detail: str):
        super().__init__(f"Network Error: {detail}")
        self.detail = detail


class ServerError(SyncError):
    """Raised when the server answers with a non-2xx status"""
    code = "SERVER_ERROR"

    def __init__(self, status_code: int):
        super().__init__(f"Server returned non-2xx status code: {status_code}")
        self.status_code = status_code


class EmptyResponseError(SyncError):
    """Raised when a 2xx response carries no body"""
    code = "EMPTY_RESPONSE"

    def __init__(self, message: str = "No data received from server"):
        super().__init__(message)


class DecodeError(SyncError):
    """Raised when no decoding strategy yields records"""
    code = "DECODE_ERROR"


class StorageError(SyncError):
    """Raised when replacing the local record set fails"""
    code = "STORAGE_ERROR"


class UnexpectedError(SyncError):
    """Wraps any other exception raised during a sync"""
    code = "UNEXPECTED_ERROR"
