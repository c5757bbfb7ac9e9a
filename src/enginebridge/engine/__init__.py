"""Engine boundary: construction contract and module loading."""

from enginebridge.engine.loader import EngineLoader, load_engine_factory, parse_factory_spec
from enginebridge.engine.protocol import Engine, EngineFactory, FilesProvider, Replier

__all__ = [
    "Engine",
    "EngineFactory",
    "EngineLoader",
    "FilesProvider",
    "Replier",
    "load_engine_factory",
    "parse_factory_spec",
]
