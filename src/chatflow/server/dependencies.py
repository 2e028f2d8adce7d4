"""FastAPI dependencies for server endpoints.

Uses dependency injection instead of global state for better
testability and multi-worker safety.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from chatflow.runtime.bootstrap import ChatflowRuntime


def get_runtime(request: Request) -> ChatflowRuntime:
    """Dependency to get the initialized runtime.

    Raises:
        HTTPException: 503 if runtime not initialized
    """
    runtime = getattr(request.app.state, "runtime", None)

    if runtime is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Service temporarily unavailable",
                "message": "Server is starting up. Please try again in a few seconds.",
            },
        )
    return runtime


# Type alias for cleaner endpoint signatures
RuntimeDep = Annotated[ChatflowRuntime, Depends(get_runtime)]
