"""
API Dependencies
Access to the process ConsoleContext and the session gate for console pages
"""
from fastapi import Depends, Request

from voiceai_console.context import ConsoleContext
from voiceai_console.core.errors import AuthenticationError


def get_context(request: Request) -> ConsoleContext:
    """The ConsoleContext built by the application lifespan."""
    return request.app.state.context


async def require_session(context: ConsoleContext = Depends(get_context)) -> ConsoleContext:
    """
    Dependency for pages that need a logged-in user.

    Raises:
        AuthenticationError: No session (answered with a redirect to /login)
    """
    if not context.session.is_authenticated:
        raise AuthenticationError("Please login to continue")
    return context
