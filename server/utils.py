import functools
import inspect

from loguru import logger


def safe_func_wrapper(func):
    """
    A decorator for coroutine functions that logs entry, exit, and exceptions.

    Features:
    - Prints function name and parameters before execution
    - Catches exceptions, prints error info, and re-raises
    - Prints success message after the coroutine finishes
    - Preserves function metadata and return values
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        # Get function name
        func_name = func.__name__

        # Build parameter dictionary
        sig = inspect.signature(func)
        bound_args = sig.bind(*args, **kwargs)
        bound_args.apply_defaults()
        params = dict(bound_args.arguments)

        # Entry log
        logger.info(f"Entering {func_name} with params: {params}")

        try:
            result = await func(*args, **kwargs)
            logger.info(f"Success. Exiting {func_name}..")
            return result
        except Exception as e:
            # Exception log and re-raise
            logger.info(f"Exception: {type(e).__name__}: {e}")
            raise RuntimeError(f"Exception: {type(e).__name__}: {e}") from e

    return wrapper
