# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exceptions raised while loading a configuration or planning a command.

Every error carries the process exit status the CLI should terminate with.
Planning errors are always raised before any container action is dispatched.
"""
from typing import Iterable, List, Optional

# sysexits.h
EX_USAGE = 64
EX_DATAERR = 65
EX_IOERR = 74
EX_CONFIG = 78


class HoistError(Exception):
    """Base class for all hoist errors."""

    exit_status = 1

    def __init__(self, message: str, exit_status: Optional[int] = None):
        super().__init__(message)
        if exit_status is not None:
            self.exit_status = exit_status


class ConfigError(HoistError):
    """The configuration could not be found, read, parsed or validated."""

    exit_status = EX_CONFIG


class UnknownReferenceError(HoistError):
    """A reference matches neither a declared container nor a group."""

    exit_status = EX_USAGE

    def __init__(self, reference: str, message: Optional[str] = None):
        self.reference = reference
        super().__init__(message or f"No group or container matching `{reference}`")


class InvalidTargetError(HoistError):
    """A target reference carries an unknown extension suffix."""

    exit_status = EX_USAGE


class UnresolvedDependenciesError(HoistError):
    """
    Containers remained unordered: a cycle, or a required dependency outside
    the set of containers that can be resolved.
    """

    exit_status = EX_CONFIG

    def __init__(self, unresolved: Iterable[str]):
        self.unresolved: List[str] = sorted(unresolved)
        super().__init__(
            f"Dependencies for container(s) {', '.join(self.unresolved)} could not be resolved."
        )


class EmptyTargetError(HoistError):
    """Filtering left no container to apply the command to."""

    exit_status = EX_CONFIG

    def __init__(self):
        super().__init__("Command cannot be applied to any container.")
