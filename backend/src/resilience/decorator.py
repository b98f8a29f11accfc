"""Decorator that routes calls through an ErrorHandlingService.
"""
import asyncio
import functools
import inspect
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, Optional, TypeVar, cast

from .exceptions import ResilienceError
from .types import MISSING, ErrorCategory, ErrorContext

if TYPE_CHECKING:
    from .service import ErrorHandlingService

F = TypeVar('F', bound=Callable[..., Any])


def _run_policy(start: Callable[[], Coroutine[Any, Any, Any]]) -> Any:
    """Drive a policy coroutine to completion on a private event loop.

    Work still running in the default executor (a sync call that lost its
    timeout race) is not joined when the loop closes.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise ResilienceError(
            "A sync function decorated with @resilient was called from a running event loop; "
            "decorate an async function and await it instead"
        )

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(start())
    finally:
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            # close() shuts the default executor down without waiting
            loop.close()


def resilient(
    service: 'ErrorHandlingService',
    component: str,
    operation: Optional[str] = None,
    fallback: Any = MISSING,
    category: Optional[ErrorCategory] = None,
    timeout_ms: Optional[float] = None
) -> Callable[[F], F]:
    """Decorator to run a function under the resilience policy.

    Args:
        service: Service that classifies, retries and logs
        component: Component name used for logging and category inference
        operation: Operation name (default: the function's name)
        fallback: Value returned when the call cannot succeed (default: none)
        category: Explicit error category (default: inferred from component
            and message; not used together with timeout_ms)
        timeout_ms: Race each call against this timeout instead of retrying

    Returns:
        Decorated function; coroutine functions stay awaitable, sync
        functions block until the policy resolves. Calling a decorated sync
        function from a running event loop raises ResilienceError.

    """
    def decorator(func: F) -> F:
        context = ErrorContext(component=component, operation=operation or func.__name__)

        async def run(call: Callable[[], Any]) -> Any:
            if timeout_ms is not None:
                return await service.execute_with_timeout(call, timeout_ms, context, fallback)
            return await service.execute_with_error_handling(call, context, fallback, category)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            return await run(functools.partial(func, *args, **kwargs))

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            return _run_policy(functools.partial(run, functools.partial(func, *args, **kwargs)))

        if inspect.iscoroutinefunction(func):
            return cast(F, async_wrapper)
        return cast(F, sync_wrapper)

    return decorator
