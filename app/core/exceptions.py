from fastapi import HTTPException, status


class GameError(HTTPException):
    """Base error for failures raised by the services.

    Subclasses fix the HTTP status so services only describe what went wrong.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(GameError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(GameError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(GameError):
    status_code = status.HTTP_409_CONFLICT


class StoreError(GameError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
