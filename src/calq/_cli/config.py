"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from calq._config import CalqConfig


class ConfigError(Exception):
    """Error in calq configuration."""


@dataclass(slots=True, frozen=True)
class CliConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    calq: CalqConfig = field(default_factory=CalqConfig)
    input: Path | None = None
    output: Path | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_flag(section: dict[str, object], key: str) -> bool:
    value = section.get(key, False)
    if not isinstance(value, bool):
        msg = f"Invalid [tool.calq].{key}: expected boolean"
        raise ConfigError(msg)
    return value


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.calq].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def load_config(pyproject_path: Path) -> CliConfig:
    """Load and validate [tool.calq] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed CliConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    # Extract [tool.calq] section
    tool_section = data.get("tool", {})
    calq_section = tool_section.get("calq", {})

    if not calq_section:
        # No [tool.calq] section - return empty config
        return CliConfig(project_root=project_root)

    return CliConfig(
        calq=CalqConfig(
            cache_ast=_parse_flag(calq_section, "cache-ast"),
            cache_dependency_order=_parse_flag(calq_section, "cache-dependency-order"),
        ),
        input=_parse_path(calq_section, "input", project_root),
        output=_parse_path(calq_section, "output", project_root),
        project_root=project_root,
    )


def get_config() -> CliConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        CliConfig (may be empty if no pyproject.toml or no [tool.calq] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return CliConfig()
    return load_config(pyproject_path)
