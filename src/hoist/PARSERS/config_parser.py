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
Parsers for crane.yml / docker-compose.yml style configuration files.
"""
import json
import os
import yaml
from dotenv import dotenv_values
from typing import Dict, Any, List, Optional
from ..errors import ConfigError, EX_DATAERR, EX_IOERR, EX_USAGE
from ..MODELS.project_config import ProjectConfig
from ..MODELS.container_definition import ContainerDefinition, BuildSpec
from ..UTILS.string_interpolation import EnvironmentInterpolator

DEFAULT_FILES = [
    "docker-compose.yml",
    "docker-compose.override.yml",
    "crane.yml",
    "crane.override.yml",
]


class ConfigParser:
    """
    Parser for project configuration files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None, prefix: Optional[str] = None):
        """
        Initializes the parser.

        :param context: Environment variables for interpolation. Defaults to the
            process environment layered over a `.env` file next to the config.
        :param prefix: Prefix overriding the one configured in the file.
        """
        self.context = context
        self.prefix = prefix

    def load(self, files: Optional[List[str]] = None, cwd: Optional[str] = None) -> ProjectConfig:
        """
        Locates, reads and merges the configuration files.

        Files may be given colon-separated. Relative files are searched for
        from the working directory upwards; later files override earlier ones.

        :param files: Config file names, defaults to DEFAULT_FILES.
        :param cwd: Directory to start searching from.
        :return: Parsed configuration.
        """
        expanded = []
        for f in files or DEFAULT_FILES:
            expanded.extend(part for part in f.split(':') if part)
        if not expanded:
            raise ConfigError("No config files given")

        config_path = self.find_config_path(expanded, cwd)
        data: Dict[str, Any] = {}
        found = False
        for f in expanded:
            file_path = f if os.path.isabs(f) else os.path.join(config_path, f)
            if os.path.exists(file_path):
                data = self._merge(data, self._read_raw(file_path, config_path))
                found = True
            elif os.path.basename(f) not in DEFAULT_FILES:
                raise ConfigError(f"Configuration file {f} was not found!")
        if not found:
            raise ConfigError(f"No config files found for: {', '.join(expanded)}")

        return self._build(data, config_path)

    def parse(self, config_file: str) -> ProjectConfig:
        """
        Parses a single config file from a path.

        :param config_file: Path to the config file.
        :return: Parsed configuration.
        """
        config_path = os.path.dirname(os.path.abspath(config_file))
        return self._build(self._read_raw(config_file, config_path), config_path)

    def parse_from_string(self, content: str, ext: str = ".yml", path: Optional[str] = None) -> ProjectConfig:
        """
        Parses a configuration from a string.

        :param content: YAML or JSON content.
        :param ext: File extension deciding the format.
        :param path: Directory the configuration belongs to.
        :return: Parsed configuration.
        """
        return self._build(self._decode(content, ext, path), path)

    @staticmethod
    def find_config_path(files: List[str], cwd: Optional[str] = None) -> str:
        """
        Determines the directory holding the configuration.

        If the first file is absolute, its directory is used. Otherwise the
        directories are traversed upwards until one contains any of the files.
        """
        if os.path.isabs(files[0]):
            return os.path.dirname(files[0])

        config_path = os.path.abspath(cwd or os.getcwd())
        while True:
            for f in files:
                if os.path.exists(os.path.join(config_path, f)):
                    return config_path
            parent = os.path.dirname(config_path)
            if parent == config_path:
                break
            config_path = parent

        raise ConfigError(f"No config files found for: {', '.join(files)}")

    def _context_for(self, config_path: Optional[str]) -> Dict[str, str]:
        if self.context is not None:
            return self.context
        context = {}
        if config_path:
            env_file = os.path.join(config_path, ".env")
            if os.path.exists(env_file):
                context.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        context.update(os.environ)
        return context

    def _read_raw(self, file_path: str, config_path: Optional[str]) -> Dict[str, Any]:
        try:
            with open(file_path, 'r') as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read {file_path}: {e}", EX_IOERR) from e
        return self._decode(content, os.path.splitext(file_path)[1], config_path)

    def _decode(self, content: str, ext: str, config_path: Optional[str]) -> Dict[str, Any]:
        content = EnvironmentInterpolator.interpolate(content, self._context_for(config_path))

        if ext == ".json":
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                line = content.splitlines()[e.lineno - 1] if content.splitlines() else ''
                raise ConfigError(
                    f"Error in line {e.lineno}: {e.msg}\n{line}\n{' ' * (e.colno - 1)}^", EX_DATAERR
                ) from e
        elif ext in (".yml", ".yaml"):
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML: {e}", EX_DATAERR) from e
        else:
            raise ConfigError(f"Unrecognized file extension `{ext}`", EX_DATAERR)

        if not data:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping", EX_DATAERR)
        return data

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merges two raw configurations. Mappings are merged recursively, any
        other value of ``override`` replaces the one in ``base``.
        """
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _build(self, data: Dict[str, Any], config_path: Optional[str]) -> ProjectConfig:
        raw_containers = data.get('services')
        if raw_containers is None:
            raw_containers = data.get('containers', {})
        if not isinstance(raw_containers, dict):
            raise ConfigError("`services` must be a mapping of container names", EX_DATAERR)

        containers = {}
        for name, spec in raw_containers.items():
            containers[str(name)] = self._parse_container(str(name), spec or {})

        groups = {}
        for name, members in (data.get('groups') or {}).items():
            groups[str(name)] = [str(m) for m in self._to_list(members)]

        return ProjectConfig(
            containers=containers,
            groups=groups,
            networks=self._names(data.get('networks')),
            volumes=self._names(data.get('volumes')),
            prefix=self._prefix(data.get('prefix'), config_path),
            path=config_path,
        )

    def _parse_container(self, name: str, spec: Dict[str, Any]) -> ContainerDefinition:
        """
        Parses a single container definition.

        :param name: The name of the container.
        :param spec: The container specification dictionary.
        :return: A ContainerDefinition instance.
        """
        if not isinstance(spec, dict):
            raise ConfigError(f"Definition of `{name}` must be a mapping", EX_DATAERR)

        build = spec.get('build')
        if isinstance(build, dict):
            build = BuildSpec(context=build.get('context'),
                              dockerfile=build.get('dockerfile') or build.get('file'))
        elif build:
            build = BuildSpec(context=str(build))
        else:
            build = None

        if not spec.get('image') and build is None:
            raise ConfigError(f"Neither image or build specified for `{name}`", EX_USAGE)

        # Environment
        env = {}
        env_spec = spec.get('env', spec.get('environment', []))
        if isinstance(env_spec, dict):
            env = {str(k): '' if v is None else str(v) for k, v in env_spec.items()}
        else:
            for e in self._to_list(env_spec):
                k, _, v = str(e).partition('=')
                env[k] = v

        # Network: explicit net wins over network_mode, then the first listed network
        net = spec.get('net') or spec.get('network_mode')
        if not net and spec.get('networks'):
            networks = self._names(spec.get('networks'))
            net = networks[0] if networks else None

        volumes = []
        for v in self._to_list(spec.get('volume', spec.get('volumes', []))):
            if isinstance(v, dict):
                v = ':'.join(str(part) for part in (v.get('source'), v.get('target')) if part)
            volumes.append(str(v))

        return ContainerDefinition(
            name=name,
            image=spec.get('image'),
            build=build,
            command=[str(c) for c in self._to_list(spec.get('cmd', spec.get('command', [])))],
            env=env,
            links=[str(l) for l in self._to_list(spec.get('link', spec.get('links', [])))],
            volumes_from=[str(v) for v in self._to_list(spec.get('volumes-from', spec.get('volumes_from', [])))],
            net=str(net) if net else None,
            volumes=volumes,
        )

    def _prefix(self, raw_prefix: Any, config_path: Optional[str]) -> str:
        # CLI > Config > Default
        if self.prefix:
            return self.prefix
        if raw_prefix is None or raw_prefix is False:
            return ""
        if raw_prefix is True:
            return os.path.basename(config_path or os.getcwd()) + "_"
        if isinstance(raw_prefix, str):
            return raw_prefix
        raise ConfigError("prefix must be either string or boolean", EX_DATAERR)

    def _names(self, val: Any) -> List[str]:
        if isinstance(val, dict):
            return [str(k) for k in val.keys()]
        return [str(v) for v in self._to_list(val)]

    def _to_list(self, val: Any) -> List[Any]:
        """
        Helper to ensure a value is a list.

        :param val: The value to convert.
        :return: A list.
        """
        if val is None:
            return []
        if isinstance(val, (str, dict)):
            return [val]
        return list(val)
