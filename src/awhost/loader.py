"""
Loading of app targets given on the command line.

A target is ``package.module:attr`` or ``path/to/file.py:attr``. The
attribute may be dotted (``obj.app``) and may end with ``()`` to call a
factory returning the app.
"""
import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Callable, cast

from .app import App
from .utils import expanded_path

logger = logging.getLogger(__name__)


def _parse_target(target: str) -> tuple[str, str]:
    """
    Split a target into its module and attribute parts.

    Windows drive letters (``C:\\app.py:app``) are kept in the module part.

    :raises ValueError: If the attribute part is missing.
    """
    if target.count(":") == 0 or (
            target.count(":") == 1 and target.index(":") == 1 and target[0].isalpha()
    ):
        raise ValueError(f"Invalid target '{target}': expected 'module:attribute'")

    module_part, attr_part = target.rsplit(":", 1)
    if not module_part or not attr_part:
        raise ValueError(f"Invalid target '{target}': expected 'module:attribute'")
    return module_part, attr_part


def _is_path(module_part: str) -> bool:
    return module_part.endswith(".py") or "/" in module_part or "\\" in module_part


def _get_nested_attr(obj: object, attr_path: str) -> object:
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    return obj


def _resolve_reference(module: ModuleType, reference: str) -> object:
    """
    Resolve an attribute reference inside a module.

    :raises AttributeError: If the reference cannot be resolved.
    :raises TypeError: If a ``name()`` reference is not callable.
    """
    if reference.endswith("()"):
        attr_name = reference[:-2]
        obj = _get_nested_attr(module, attr_name)
        if callable(obj):
            logger.debug("Calling %s() to get the app", attr_name)
            return cast(Callable, obj)()
        raise TypeError(f"'{attr_name}' is not callable")

    return _get_nested_attr(module, reference)


def _load_file(path: Path) -> ModuleType:
    """
    Load a module from a Python source file.

    :raises FileNotFoundError: If the file does not exist.
    """
    path = expanded_path(path)
    if not path.is_absolute():
        path = path.resolve()

    if not path.is_file():
        logger.error("Module not found: %s", path)
        raise FileNotFoundError(f"Module not found: {path}")

    module_name = path.stem
    if module_name in sys.modules and getattr(sys.modules[module_name], "__file__", None) == str(path):
        logger.debug("Module already loaded, reusing: %s", module_name)
        return sys.modules[module_name]

    parent_dir = path.parent.as_posix()
    if parent_dir not in sys.path:
        logger.debug("Adding to sys.path: %s", parent_dir)
        sys.path.insert(0, parent_dir)

    spec = importlib.util.spec_from_file_location(module_name, path.as_posix())
    assert spec is not None
    loader = spec.loader
    assert loader is not None

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module

    logger.debug("Executing module: %s", module_name)
    loader.exec_module(module)
    return module


def load_module(module_part: str) -> ModuleType:
    if _is_path(module_part):
        return _load_file(Path(module_part))
    logger.debug("Importing module: %s", module_part)
    return importlib.import_module(module_part)


def load_app(target: str) -> App:
    """
    Load the app referenced by a target string.

    :raises ValueError: If the target is malformed.
    :raises TypeError: If the reference does not yield an App.
    """
    module_part, reference = _parse_target(target)
    module = load_module(module_part)
    app = _resolve_reference(module, reference)
    if not isinstance(app, App):
        raise TypeError(f"'{target}' is not an App (got {type(app).__name__})")
    return app
