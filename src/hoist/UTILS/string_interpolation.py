"""
Utilities for string interpolation using environment variables.
"""
import re
from typing import Dict


class EnvironmentInterpolator:
    """
    Utility for interpolating environment variables in strings.
    Supports $VAR, ${VAR}, ${VAR:-default} and ${VAR:+value}; `$$` yields a
    literal dollar sign.
    """
    # Group 1: escaped dollar
    # Group 2: braced name, group 3: modifier, group 4: alternative value
    # Group 5: bare name
    PATTERN = re.compile(
        r'(\$\$)'
        r'|\$\{([A-Za-z_][A-Za-z0-9_]*)(?::(-|\+)([^}]*))?\}'
        r'|\$([A-Za-z_][A-Za-z0-9_]*)'
    )

    @classmethod
    def interpolate(cls, template: str, context: Dict[str, str]) -> str:
        """
        Interpolates environment variables in the template string using the provided context.
        Unset variables expand to an empty string, as they do in a shell.

        :param template: The string containing $VAR or ${VAR} placeholders.
        :param context: The environment variables context.
        :return: The interpolated string.
        """
        def replace(match):
            if match.group(1):
                return '$'

            var_name = match.group(2) or match.group(5)
            modifier = match.group(3)  # None, '-', or '+'
            alt_value = match.group(4) or ''

            value = context.get(var_name)

            if modifier == '-':
                # use default if VAR is unset or empty
                return value if value else alt_value
            if modifier == '+':
                # use alt_value if VAR is set and not empty
                return alt_value if value else ''
            return value if value is not None else ''

        return cls.PATTERN.sub(replace, template)
