"""Workflow error taxonomy.

Both kinds are HTTP errors so they propagate out of services and routers the
same way every other HTTPException does. Partial failures inside a workflow
are compensated or logged there and never get a type of their own.
"""

from typing import Any, Optional

from fastapi import HTTPException


class ValidationFailure(HTTPException):
    """Malformed or missing input, raised before any write is attempted"""

    def __init__(self, detail: Any, status_code: int = 400):
        super().__init__(status_code=status_code, detail=detail)


class GatewayFailure(HTTPException):
    """A data store call failed; the current workflow step was aborted"""

    def __init__(self, detail: Any, status_code: int = 502, cause: Optional[Exception] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.cause = cause
