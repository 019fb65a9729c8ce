"""Dynamic loading of adapter constructors that are not built in.

Module references take one of these forms:

* ``file:///abs/path/adapter.py`` or ``file:///abs/path/adapter.py:create_x``
* ``package.module`` or ``package.module:create_x``
* ``package.module@1.2.0``: pins the version installed when the module is
  missing.

Modules that cannot be imported are installed with pip into the running
interpreter unless ``MODELGATE_DISABLE_ADAPTER_INSTALL`` is set.
"""

from __future__ import annotations

import asyncio
import hashlib
import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Callable, Optional, Tuple

from modelgate._internal.flags import auto_install_adapters

logger = logging.getLogger(__name__)

FILE_SCHEME = "file://"


class AdapterLoadError(RuntimeError):
    """Raised when an adapter module or its constructor cannot be loaded."""


def parse_module_ref(module_ref: str) -> Tuple[str, Optional[str], Optional[str]]:
    """Split a package reference into ``(module, version, attr)``.

    Examples:
        >>> parse_module_ref("acme_adapter@1.2:create_acme")
        ('acme_adapter', '1.2', 'create_acme')
    """
    target, _, attr = module_ref.partition(":")
    module, _, version = target.partition("@")
    return module, version or None, attr or None


def distribution_name(module: str) -> str:
    """Guess the index name of the distribution providing ``module``."""
    return module.split(".", 1)[0].replace("_", "-")


def find_constructor(module: ModuleType, attr: Optional[str] = None) -> Callable:
    """Return ``attr`` from ``module``, else its first export named ``create*``.

    Exports are taken from ``__all__`` when present, otherwise in definition
    order.
    """
    if attr:
        constructor = getattr(module, attr, None)
        if not callable(constructor):
            raise AdapterLoadError(f"{module.__name__} has no callable '{attr}'")
        return constructor

    names = getattr(module, "__all__", None) or list(vars(module))
    for name in names:
        value = getattr(module, name, None)
        if name.startswith("create") and callable(value):
            return value
    raise AdapterLoadError(f"{module.__name__} exports no 'create*' constructor")


def _load_file(path: Path) -> ModuleType:
    if not path.is_file():
        raise AdapterLoadError(f"Adapter file not found: {path}")
    digest = hashlib.sha256(str(path).encode()).hexdigest()[:12]
    name = f"modelgate_adapter_{digest}"
    cached = sys.modules.get(name)
    if cached is not None:
        return cached

    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise AdapterLoadError(f"Cannot load adapter file: {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


async def install(requirement: str) -> None:
    """Install ``requirement`` with pip into the running interpreter."""
    logger.info("installing adapter package %s", requirement)
    process = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        "pip",
        "install",
        "--disable-pip-version-check",
        requirement,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    _, stderr = await process.communicate()
    if process.returncode != 0:
        raise AdapterLoadError(
            f"pip install {requirement} failed with exit code {process.returncode}: "
            f"{stderr.decode(errors='replace').strip()}"
        )
    importlib.invalidate_caches()


async def import_module(module: str, version: Optional[str] = None) -> ModuleType:
    """Import ``module``, installing its distribution first when it is missing."""
    if not module or not all(part.isidentifier() for part in module.split(".")):
        raise AdapterLoadError(f"'{module}' is not an importable module name")
    if importlib.util.find_spec(module.split(".", 1)[0]) is None:
        if not auto_install_adapters():
            raise AdapterLoadError(f"Adapter module '{module}' is not installed")
        requirement = distribution_name(module)
        if version:
            requirement = f"{requirement}=={version}"
        await install(requirement)
    return importlib.import_module(module)


async def load_constructor(module_ref: str) -> Callable:
    """Resolve ``module_ref`` to an adapter constructor.

    Raises:
        AdapterLoadError: If the module cannot be found, installed or imported
            into a constructor.
    """
    if module_ref.startswith(FILE_SCHEME):
        location = module_ref[len(FILE_SCHEME):]
        attr: Optional[str] = None
        head, sep, tail = location.rpartition(":")
        if sep and tail.isidentifier():
            location, attr = head, tail
        module = _load_file(Path(location))
    else:
        name, version, attr = parse_module_ref(module_ref)
        module = await import_module(name, version)

    constructor = find_constructor(module, attr)
    logger.info("loaded adapter %s from %s", getattr(constructor, "__name__", constructor), module_ref)
    return constructor


__all__ = [
    "AdapterLoadError",
    "distribution_name",
    "find_constructor",
    "import_module",
    "install",
    "load_constructor",
    "parse_module_ref",
]
