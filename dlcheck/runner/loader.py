"""Import test files and run their ``register`` function."""

import importlib.util
import inspect
import logging
import re
import sys
import uuid
from pathlib import Path
from types import ModuleType
from typing import Union

from ..errors import CollectionError
from .collector import CollectionContext

logger = logging.getLogger(__name__)

MODULE_PREFIX = "dlcheck_testfile_"


def _module_name_for(path: Path) -> str:
    stem = re.sub(r"\W", "_", path.stem)
    return f"{MODULE_PREFIX}{stem}_{uuid.uuid4().hex[:8]}"


def load_test_file(path: Union[str, Path], api: CollectionContext) -> ModuleType:
    """Import ``path`` under a fresh module name and call ``register(api)``.

    Every call imports the file again, so loading the same file twice
    registers its tests twice into whichever ``api`` is passed.

    Args:
        path: Test file, normally matching ``**/*.dltest.py``
        api: Collection context the file registers against

    Returns:
        The imported module

    Raises:
        CollectionError: If the file cannot be imported, has no callable
            ``register`` or ``register`` raises
    """
    file_path = Path(path).resolve()
    if not file_path.is_file():
        raise CollectionError(f"Test file not found: {file_path}")

    module_name = _module_name_for(file_path)
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise CollectionError(f"Cannot import test file: {file_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise CollectionError(f"Failed to import test file {file_path}: {e}") from e

    register = getattr(module, "register", None)
    if not callable(register):
        sys.modules.pop(module_name, None)
        raise CollectionError(
            f"Test file {file_path} does not define a register(api) function"
        )

    before = len(api.collected)
    try:
        result = register(api)
    except CollectionError:
        raise
    except Exception as e:
        raise CollectionError(f"Failed to collect tests from file {file_path}: {e}") from e

    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise CollectionError(f"register() in {file_path} must be a regular function, not async")

    logger.debug(f"Loaded {file_path} as {module_name}: {len(api.collected) - before} test(s)")
    return module
