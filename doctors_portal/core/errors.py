"""HTTP-aware error taxonomy shared by the auth gate, services and routes."""

from fastapi import HTTPException, status


class Unauthenticated(HTTPException):
    """No usable credential was supplied."""

    def __init__(self, detail: str = 'Not authenticated') -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={'WWW-Authenticate': 'Bearer'},
        )


class Forbidden(HTTPException):
    """A credential was supplied but does not grant the operation."""

    def __init__(self, detail: str = 'Forbidden access') -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidToken(Forbidden):
    def __init__(self, detail: str = 'Invalid or expired token') -> None:
        super().__init__(detail=detail)


class InvalidRequest(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidSlot(InvalidRequest):
    pass


class NotFound(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class Inconsistent(HTTPException):
    """Stored state disagrees with itself and needs operator attention."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class Upstream(HTTPException):
    def __init__(self, detail: str = 'Database unavailable. Verify DATABASE_URL and database credentials.') -> None:
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
