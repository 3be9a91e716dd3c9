"""Repository decorator for standardizing DB operations.

Wraps repository methods with:
- Structured logging with context and timing information
- Error classification by log level (expected repository errors stay quiet)
- Re-raising of every error; nothing is translated or swallowed
"""

from collections.abc import Callable, Coroutine
import functools
import inspect
import time
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.exc import (
    DatabaseError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)

from readinglists.config import get_logger
from readinglists.domain.errors import InconsistentStateError, ReadingListRepositoryError

# Type variables for generic function signatures
P = ParamSpec("P")
T = TypeVar("T")

# Initialize logger
logger = get_logger(__name__)


def db_operation(operation_name: str | None = None):
    """Decorate repository methods with consistent logging and error handling.

    Args:
        operation_name: Optional name for the operation (defaults to function name)

    Example:
        @db_operation("add_list")
        async def add_list(self, name: str) -> int:
            ...
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        func_name = operation_name or func.__name__

        if not inspect.iscoroutinefunction(func):
            raise TypeError(
                f"db_operation can only be used with async functions, but {func_name} is not async",
            )

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            repo = args[0] if args else None
            repo_name = repo.__class__.__name__ if repo is not None else "Repository"
            context = _build_log_context(repo, kwargs)

            def elapsed_ms() -> float:
                return (time.perf_counter() - start_time) * 1000

            try:
                logger.trace(
                    f"DB operation starting: {repo_name}.{func_name}",
                    operation=func_name,
                    **context,
                )
                result = await func(*args, **kwargs)
                logger.trace(
                    f"DB operation completed: {repo_name}.{func_name}",
                    operation=func_name,
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                return result

            except ReadingListRepositoryError as e:
                # Expected, caller-facing condition
                logger.debug(
                    f"DB precondition failed: {repo_name}.{func_name}",
                    operation=func_name,
                    error_code=e.code,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

            except InconsistentStateError as e:
                logger.error(
                    f"Inconsistent state in {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

            except IntegrityError as e:
                logger.warning(
                    f"DB integrity error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

            except TimeoutError as e:
                # Pool checkout timeouts
                logger.error(
                    f"DB timeout error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

            except OperationalError as e:
                # Lock wait timeouts, lost connections
                logger.error(
                    f"DB operational error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

            except DatabaseError as e:
                logger.error(
                    f"DB error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

            except SQLAlchemyError as e:
                logger.error(
                    f"SQLAlchemy error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

            except Exception as e:
                logger.exception(
                    f"Unhandled exception in {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise

        return wrapper

    return decorator


def _build_log_context(repo: Any, kwargs: dict[str, Any]) -> dict[str, Any]:
    """Build a context dictionary for logging from the repository and kwargs.

    Args:
        repo: Repository instance (first positional argument)
        kwargs: Function keyword arguments

    Returns:
        A dictionary with loggable values
    """
    context: dict[str, Any] = {
        k: v
        for k, v in kwargs.items()
        if not k.startswith("_") and isinstance(v, int | str | float | bool)
    }

    user_id = getattr(repo, "user_id", None)
    if user_id is not None:
        context.setdefault("user_id", user_id)

    return context
