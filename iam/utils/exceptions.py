from fastapi import HTTPException, status


class Unauthenticated(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class Forbidden(HTTPException):
    """
    Raised by an authorization checkpoint after the ability denied a request.

    Carries the verb and subject type for diagnostics, never the content of
    the policy that denied the request.
    """

    def __init__(self, verb: str, subject_type: str):
        self.verb = verb
        self.subject_type = subject_type
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Forbidden: cannot {verb} on {subject_type}",
        )


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class DuplicateError(HTTPException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )
