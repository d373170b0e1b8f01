"""Environment variable expansion for configuration and topology documents."""
import os
import re
from typing import Any, Dict, Mapping, Optional

from topoplan.domain.base.exceptions import ConfigurationError

# ${VAR}, ${VAR:default} or $VAR
_ENV_PATTERN = re.compile(
    r"\$\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<default>[^}]*))?\}"
    r"|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)"
)


def expand_env_vars(value: Any, strict: bool = False,
                    environ: Optional[Mapping[str, str]] = None,
                    braced_only: bool = False) -> Any:
    """
    Expand environment variables in strings, recursively through dicts and lists.

    Unset variables without a default are left untouched, or raise
    ``ConfigurationError`` when ``strict`` is set. With ``braced_only`` the
    bare ``$VAR`` form is left alone, which keeps shell snippets intact.
    Non-string values are returned unchanged.
    """
    env = os.environ if environ is None else environ

    if isinstance(value, str):
        def _replace(match: "re.Match[str]") -> str:
            if braced_only and match.group("bare"):
                return match.group(0)
            name = match.group("braced") or match.group("bare")
            if name in env:
                return env[name]
            default = match.group("default")
            if default is not None:
                return default
            if strict:
                raise ConfigurationError(f"Environment variable '{name}' is not set", [name])
            return match.group(0)

        return _ENV_PATTERN.sub(_replace, value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v, strict, env, braced_only) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(v, strict, env, braced_only) for v in value]
    return value


def expand_config_env_vars(config: Dict[str, Any]) -> Dict[str, Any]:
    """Expand environment variables in a whole configuration dictionary."""
    return expand_env_vars(config)
