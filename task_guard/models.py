"""
Data models for task-guard configuration.

Runtime options (command line) and the declarative Guardfile are both
validated with pydantic.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class GuardOptions(BaseModel):
    """Runtime options for a guard session."""

    clear: bool = False
    notify: bool = True
    debug: bool = False
    group: List[str] = Field(default_factory=list)
    plugin: List[str] = Field(default_factory=list)
    watchdir: List[str] = Field(default_factory=list)
    guardfile: Optional[str] = None
    no_interactions: bool = False

    # Passed through verbatim to the listener backend
    latency: Optional[float] = Field(default=None, gt=0)
    force_polling: bool = False
    wait_for_delay: Optional[float] = Field(default=None, ge=0)

    def watchdirs(self) -> List[str]:
        """
        Get the absolute directories to watch.

        Returns:
            Expanded watch directories, or the current directory if none set
        """
        if not self.watchdir:
            return [os.getcwd()]
        return [str(Path(d).expanduser().resolve()) for d in self.watchdir]

    def listener_options(self) -> Dict[str, Any]:
        """Get the listener tuning values that were explicitly set."""
        options: Dict[str, Any] = {}
        if self.latency:
            options["latency"] = self.latency
        if self.force_polling:
            options["force_polling"] = True
        if self.wait_for_delay is not None:
            options["wait_for_delay"] = self.wait_for_delay
        return options


class PluginDefinition(BaseModel):
    """A plugin entry in the Guardfile."""

    type: str
    name: Optional[str] = None
    watch: List[str] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def type_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("plugin type must not be empty")
        return value.strip()


class GroupDefinition(BaseModel):
    """A named group of plugins in the Guardfile."""

    name: str
    plugins: List[PluginDefinition] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("group name must not be empty")
        return value.strip()


class ScopeDefinition(BaseModel):
    """Default scope declared in the Guardfile."""

    groups: List[str] = Field(default_factory=list)
    plugins: List[str] = Field(default_factory=list)


class GuardfileDefinition(BaseModel):
    """Top-level Guardfile document."""

    version: str = "1.0"
    notification: Optional[bool] = None
    clearing: Optional[bool] = None
    ignore: List[str] = Field(default_factory=list)
    scope: ScopeDefinition = Field(default_factory=ScopeDefinition)
    groups: List[GroupDefinition] = Field(default_factory=list)

    # Plugins outside any group land in the default group
    plugins: List[PluginDefinition] = Field(default_factory=list)

    def plugin_count(self) -> int:
        return len(self.plugins) + sum(len(g.plugins) for g in self.groups)
