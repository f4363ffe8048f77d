"""Cross-module implementor registry for documentation viewers."""

from __future__ import annotations

from .config import IndexConfig, load_config
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .exceptions import FragmentDecodeError, ImplementorIndexError, MalformedFragmentError
from .fragments import LoadReport, load_fragments, parse_fragment
from .gate import ConsumerGate
from .records import (
    ConsumerHandle,
    ImplementorRecord,
    ImplementorRegistry,
    ModuleMapping,
    RegistrySnapshot,
)
from .registrar import IndexSession, attach_consumer, get_session, register, reset_session
from .version import get_version


__version__ = get_version()

__all__ = [
    "ConsumerGate",
    "ConsumerHandle",
    "DiagnosticEmitter",
    "FragmentDecodeError",
    "ImplementorIndexError",
    "ImplementorRecord",
    "ImplementorRegistry",
    "IndexConfig",
    "IndexSession",
    "LoadReport",
    "LoggingEmitter",
    "MalformedFragmentError",
    "ModuleMapping",
    "NullEmitter",
    "RegistrySnapshot",
    "__version__",
    "attach_consumer",
    "get_session",
    "load_config",
    "load_fragments",
    "parse_fragment",
    "register",
    "reset_session",
]
