"""Engine module loading.

The engine's construction entry point is named explicitly as
``"package.module:attribute"`` or ``"path/to/engine.py:attribute"`` and
returned by the loader; nothing is looked up in a global registry.

Readiness is a single task that resolves once, when the module has been
imported and its optional ``ready()`` coroutine has finished. Waiting on it
is bounded by a timeout, and a timeout is fatal.
"""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import inspect
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from enginebridge.exceptions import EngineLoadError
from enginebridge.logging import get_logger

if TYPE_CHECKING:
    from enginebridge.engine.protocol import EngineFactory

log = get_logger("engine")

READY_HOOK = "ready"


def parse_factory_spec(spec: str) -> tuple[str, str]:
    """Split ``"module:attribute"`` into its parts.

    Raises:
        EngineLoadError: If either part is missing.
    """
    module_name, sep, attr = spec.rpartition(":")
    if not sep or not module_name or not attr:
        raise EngineLoadError(
            f"Engine factory must look like 'module:attribute', got {spec!r}"
        )
    return module_name, attr


def _import_module(module_name: str) -> ModuleType:
    if module_name.endswith(".py"):
        path = Path(module_name).resolve()
        unique_name = f"enginebridge_engine_{path.stem}_{id(path)}"
        spec = importlib.util.spec_from_file_location(unique_name, path)
        if spec is None or spec.loader is None:
            raise EngineLoadError(f"Cannot load engine module from {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[unique_name] = module
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(module_name)


def _resolve_ready(hook: Any) -> Any:
    if isinstance(hook, asyncio.Event):
        return hook.wait()
    if callable(hook) and not inspect.isawaitable(hook):
        return hook()
    return hook


async def _await_ready(hook: Any) -> None:
    """Wait on a module's readiness signal.

    ``ready`` may be a coroutine function, a plain function returning an
    awaitable (or nothing), an ``asyncio.Event`` or any awaitable.
    """
    signal = _resolve_ready(hook)
    if inspect.isawaitable(signal):
        log.debug("Waiting for engine module readiness signal")
        await signal


class EngineLoader:
    """Loads the engine module and hands back its construction entry point.

    Example:
        loader = EngineLoader("xgolsw.engine:new_language_server", timeout=5.0)
        factory = await loader.wait_ready()
    """

    def __init__(self, spec: str, timeout: float = 5.0) -> None:
        self._module_name, self._attr = parse_factory_spec(spec)
        self._spec = spec
        self._timeout = timeout
        self._task: asyncio.Task[EngineFactory] | None = None

    @property
    def spec(self) -> str:
        return self._spec

    def start(self) -> asyncio.Task[EngineFactory]:
        """Begin loading; repeated calls return the same task."""
        if self._task is None:
            self._task = asyncio.create_task(self._load())
        return self._task

    async def _load(self) -> EngineFactory:
        log.info("Loading engine module %s", self._module_name)
        try:
            module = await asyncio.to_thread(_import_module, self._module_name)
        except EngineLoadError:
            raise
        except Exception as e:
            raise EngineLoadError(
                f"Failed to import engine module {self._module_name!r}: {e}"
            ) from e

        hook = getattr(module, READY_HOOK, None)
        if hook is not None:
            await _await_ready(hook)

        factory = getattr(module, self._attr, None)
        if factory is None:
            raise EngineLoadError(
                f"Engine module {self._module_name!r} has no attribute {self._attr!r}"
            )
        if not callable(factory):
            raise EngineLoadError(f"Engine entry point {self._spec!r} is not callable")

        log.info("Engine module ready: %s", self._spec)
        return factory

    async def wait_ready(self) -> EngineFactory:
        """Wait for the engine entry point.

        Raises:
            EngineLoadError: On import failure or when the timeout expires.
        """
        task = self.start()
        try:
            return await asyncio.wait_for(asyncio.shield(task), self._timeout)
        except asyncio.TimeoutError as e:
            task.cancel()
            raise EngineLoadError(
                f"Timeout waiting for engine {self._spec!r} to become ready",
                {"timeout": self._timeout},
            ) from e


async def load_engine_factory(spec: str, timeout: float = 5.0) -> EngineFactory:
    """Load ``spec`` and return its construction entry point."""
    return await EngineLoader(spec, timeout).wait_ready()
