"""
Path normalization and relevance filtering for change batches.

Both functions run on the listener thread, so they only read shared state.
"""

import os
from typing import Iterable, List, Sequence

from task_guard.change_queue import ChangeBatch
from task_guard.plugin import Plugin, Watcher


def _relative_path(path: str, watchdirs: Sequence[str]) -> str:
    for watchdir in watchdirs:
        prefix = watchdir.rstrip(os.sep) + os.sep
        if path.startswith(prefix):
            return path[len(prefix):]
    return path


def relative_paths(batch: ChangeBatch, watchdirs: Sequence[str]) -> ChangeBatch:
    """
    Rewrite every path in the batch relative to the watch directory it is under.

    The first matching directory (in configured order) wins. Paths outside
    every watch directory are passed through unchanged.

    Args:
        batch: Batch with absolute paths (rewritten in place)
        watchdirs: Watched root directories

    Returns:
        The same batch
    """
    for paths in batch.as_tuple():
        paths[:] = [_relative_path(path, watchdirs) for path in paths]
    return batch


def guardfile_patterns(guardfile_path: str, watchdirs: Sequence[str]) -> List[str]:
    """Get the paths a changed path is compared against to detect Guardfile edits."""
    patterns = [guardfile_path]
    relative = _relative_path(guardfile_path, watchdirs)
    if relative != guardfile_path:
        patterns.append(relative)
    return patterns


def is_relevant(
    batch: ChangeBatch,
    active_plugins: Iterable[Plugin],
    config_file_patterns: Iterable[str]
) -> bool:
    """
    Check whether a change batch is worth queuing.

    A modified Guardfile is always relevant. Otherwise the batch is relevant
    as soon as one active plugin watches one of its paths.
    """
    if Watcher.match_guardfile(batch.modified, config_file_patterns):
        return True

    all_paths = batch.all_paths()
    for plugin in active_plugins:
        if Watcher.match_any(plugin, all_paths):
            return True
    return False
