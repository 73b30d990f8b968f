"""
simple-include - include preprocessor with incremental rebuilds

Mirrors a source tree into a target tree, expanding single-level include
directives, and keeps the target in sync while watching the source.
"""

__version__ = "0.3.0"
__author__ = "simple-include Contributors"

from simple_include.config import Config, WatchConfig, load_config
from simple_include.engine import IncludeEngine
from simple_include.errors import (
    ConfigurationError,
    ExpansionError,
    FailureKind,
    PathResolutionError,
    SimpleIncludeError,
    StartupError,
)
from simple_include.expander import expand, parse_directive
from simple_include.graph import DependencyGraph
from simple_include.paths import are_paths_equal, normalize_path
from simple_include.sync import SyncReport, initial_sync, list_source_files
from simple_include.watcher import EventKind, FileWatcher, WatchDispatcher, WatchEvent

__all__ = [
    "__version__",
    "__author__",
    "Config",
    "WatchConfig",
    "load_config",
    "IncludeEngine",
    "DependencyGraph",
    "expand",
    "parse_directive",
    "normalize_path",
    "are_paths_equal",
    "SyncReport",
    "initial_sync",
    "list_source_files",
    "EventKind",
    "WatchEvent",
    "WatchDispatcher",
    "FileWatcher",
    "SimpleIncludeError",
    "StartupError",
    "ConfigurationError",
    "ExpansionError",
    "PathResolutionError",
    "FailureKind",
]
