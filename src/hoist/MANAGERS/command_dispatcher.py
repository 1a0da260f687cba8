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
Dispatching of a planned command to a container driver.
"""
from typing import Callable, List, Optional, Protocol
from ..MODELS.command import Action, Command, PlannedStep
from ..MODELS.project_config import ProjectConfig
from ..RUNNERS.unit_of_work import UnitOfWork


class ContainerDriver(Protocol):
    """
    Executes single container actions against a container engine.
    """
    def apply(self, command: Command, name: str): ...

    def ensure_started(self, name: str): ...

    def prepare_network(self, name: str): ...

    def prepare_volume(self, name: str): ...


class PrintingDriver:
    """
    Driver reporting every action instead of executing it.
    """
    def __init__(self, prefix: str = "", echo: Callable[[str], None] = print):
        """
        :param prefix: Prefix of the actual container, network and volume names.
        :param echo: Function used to report actions.
        """
        self.prefix = prefix
        self.echo = echo

    def apply(self, command: Command, name: str):
        self.echo(f"{Command(command).value} {self.prefix}{name}")

    def ensure_started(self, name: str):
        self.echo(f"start {self.prefix}{name} (if not running)")

    def prepare_network(self, name: str):
        self.echo(f"create network {self.prefix}{name} (if missing)")

    def prepare_volume(self, name: str):
        self.echo(f"create volume {self.prefix}{name} (if missing)")


class CommandDispatcher:
    """
    Walks the plan of a unit of work and hands each step to a driver.
    """
    def __init__(self, unit_of_work: UnitOfWork, config: ProjectConfig, driver: ContainerDriver,
                 exists: Optional[Callable[[str], bool]] = None):
        """
        Initializes the dispatcher.

        :param unit_of_work: The planned unit of work.
        :param config: Configuration the unit of work was planned for.
        :param driver: Driver executing the single actions.
        :param exists: Optional predicate telling whether a container exists.
        """
        self.unit_of_work = unit_of_work
        self.config = config
        self.driver = driver
        self.exists = exists

    def dispatch(self, command: Command) -> List[PlannedStep]:
        """
        Executes a command over the unit of work.

        Commands bringing containers up first prepare the networks and
        volumes the closure needs.

        :param command: The command to execute.
        :return: The steps that resulted in an action.
        """
        command = Command(command)
        if command.brings_up:
            self.prepare_requirements()

        executed = []
        for step in self.unit_of_work.plan(command, self.exists):
            if step.action is Action.APPLY:
                self.driver.apply(command, step.name)
            elif step.action is Action.ENSURE_STARTED:
                self.driver.ensure_started(step.name)
            else:
                continue
            executed.append(step)
        return executed

    def prepare_requirements(self):
        for network in self.unit_of_work.required_networks(self.config):
            self.driver.prepare_network(network)
        for volume in self.unit_of_work.required_volumes(self.config):
            self.driver.prepare_volume(volume)
