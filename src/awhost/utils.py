import inspect
import os
from pathlib import Path
from typing import Any, Awaitable, Union


def expanded_path(path: Union[str, Path]) -> Path:
    """
    Expands environment variables, user tilde, and normalizes path separators
    in a given path.

    :param path: The path to expand.
    :return: The expanded and normalized path as a Path object.
    """
    if isinstance(path, Path):
        path = str(path)

    # Expand environment variables and user (~)
    return Path(os.path.expandvars(os.path.expanduser(path)))


async def maybe_await(result: Union[Any, Awaitable[Any]]) -> Any:
    """
    Await the result of a user callback when it is awaitable.

    Component methods may be plain functions or coroutine functions.

    :param result: The value returned by the callback.
    :return: The awaited (or plain) value.
    """
    if inspect.isawaitable(result):
        return await result
    return result
