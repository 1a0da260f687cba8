"""
Models for the commands a unit of work can be dispatched for.
"""
from enum import Enum
from typing import NamedTuple


class Command(str, Enum):
    """
    User facing commands.
    """
    UP = "up"
    LIFT = "lift"
    RUN = "run"
    CREATE = "create"
    START = "start"
    EXEC = "exec"
    STOP = "stop"
    KILL = "kill"
    RM = "rm"
    PAUSE = "pause"
    UNPAUSE = "unpause"
    PROVISION = "provision"
    PULL = "pull"
    PUSH = "push"
    LOGS = "logs"
    STATUS = "status"
    STATS = "stats"

    @property
    def brings_up(self) -> bool:
        """Whether supporting containers may have to be started, too."""
        return self in _BRING_UP

    @property
    def reverse_order(self) -> bool:
        """Whether dependents are handled before their dependencies."""
        return self in _TEAR_DOWN


_BRING_UP = frozenset({Command.UP, Command.LIFT, Command.RUN, Command.CREATE, Command.START, Command.EXEC})
_TEAR_DOWN = frozenset({Command.STOP, Command.KILL, Command.RM, Command.PAUSE})


class Action(str, Enum):
    """
    Intensity with which a container takes part in a command.
    """
    APPLY = "apply"
    ENSURE_STARTED = "ensure-started"
    NONE = "none"


class PlannedStep(NamedTuple):
    """A container and the action planned for it."""
    name: str
    action: Action
