"""
Environment variable management with .env file support.

Loads .env files through python-dotenv and substitutes ``${VAR}`` style
references inside YAML configuration (relay settings and template stores).
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# ${VAR}, ${VAR:-default}, ${VAR:?error}
_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([?-])([^}]*))?\}")


class EnvManager:
    """
    Manages environment variables for eventrelay.

    Example:
        >>> env = EnvManager()
        >>> env.load()  # Loads .env if exists
        >>> endpoint = env.get("EVENTRELAY_ENDPOINT")
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = True):
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False

        if auto_load:
            self.load()

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load environment variables from a .env file.

        Returns:
            True if the file existed and was loaded
        """
        env_path = self.project_root / ".env" if env_file is None else Path(env_file)
        if not env_path.exists():
            return False

        load_dotenv(env_path, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        """
        Get an environment variable value.

        Raises:
            ValueError: If required=True and the variable is not set
        """
        value = os.environ.get(key, default)

        if required and value is None:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)

        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get environment variable as boolean."""
        value = (self.get(key, "") or "").lower()
        if value in ("true", "1", "yes", "on"):
            return True
        if value in ("false", "0", "no", "off"):
            return False
        return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get environment variable as float."""
        try:
            return float(self.get(key, str(default)))
        except (ValueError, TypeError):
            return default

    def substitute(self, text: str) -> str:
        """
        Substitute environment variables in text.

        Supports ``${VAR}``, ``${VAR:-default}`` and ``${VAR:?error}``.
        Unset plain ``${VAR}`` references are left as they are.

        Example:
            >>> os.environ["RELAY_HOST"] = "analytics.example.com"
            >>> env.substitute("https://${RELAY_HOST}/events")
            'https://analytics.example.com/events'
        """

        def replace(match: re.Match) -> str:
            var_name, operator, operand = match.group(1), match.group(2), match.group(3)
            value = os.environ.get(var_name)

            if operator == "-":
                return value if value is not None else operand
            if operator == "?":
                if value is None:
                    raise ValueError(operand or f"Required variable not set: {var_name}")
                return value
            return value if value is not None else match.group(0)

        return _VAR_PATTERN.sub(replace, text)

    def substitute_data(self, data: Any) -> Any:
        """Recursively substitute environment variables in loaded YAML data."""
        if isinstance(data, str):
            return self.substitute(data)
        if isinstance(data, dict):
            return {key: self.substitute_data(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self.substitute_data(item) for item in data]
        return data


# Global instance
_global_env: EnvManager | None = None


def get_env() -> EnvManager:
    """Get the global environment manager instance."""
    global _global_env
    if _global_env is None:
        _global_env = EnvManager(auto_load=False)
    return _global_env
