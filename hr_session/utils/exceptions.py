# hr_session/utils/exceptions.py — HTTP errors raised by the privileged functions
#
# main.py renders every one of these as {"error": detail}.

from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    def __init__(self, message: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class UnauthorizedError(HTTPException):
    """Missing or unverifiable bearer credential."""

    def __init__(self, message: str = "Invalid user token"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


class ForbiddenError(HTTPException):
    """Verified caller without the role or scope the operation needs."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


class NotFoundError(HTTPException):
    def __init__(self, resource: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")
