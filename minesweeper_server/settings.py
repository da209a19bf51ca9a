import os
import pathlib
import platform
import tomllib
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

DEFAULT_SESSION_TTL = 24 * 60 * 60


@dataclass
class ServerConfig:
    """Runtime settings for the HTTP server and the session registry."""
    host: str = "127.0.0.1"
    port: int = 3000
    use_https: bool = False
    cert_path: Optional[str] = None
    key_path: Optional[str] = None
    session_ttl: float = DEFAULT_SESSION_TTL
    first_click_safe: bool = True
    protect_neighbors: bool = False


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


_ENV_KEYS = {
    "HOST": "host",
    "PORT": "port",
    "USE_HTTPS": "use_https",
    "CERT_PATH": "cert_path",
    "KEY_PATH": "key_path",
    "SESSION_TTL_SECONDS": "session_ttl",
    "FIRST_CLICK_SAFE": "first_click_safe",
    "PROTECT_NEIGHBORS": "protect_neighbors",
}


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(ServerConfig)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown server settings: {', '.join(sorted(unknown))}")

    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key == "port":
            out[key] = int(value)
        elif key == "session_ttl":
            out[key] = float(value)
        elif key in ("use_https", "first_click_safe", "protect_neighbors"):
            out[key] = _parse_bool(value)
        else:
            out[key] = value
    return out


# Loads the server settings. Values come from the named profile in the
# config file when MINESWEEPER_PROFILE is set, and environment variables
# override the profile.
def get_server_config(environ: Optional[Dict[str, str]] = None) -> ServerConfig:
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    profile_name = environ.get("MINESWEEPER_PROFILE")
    config_file_path = get_config_file_path(environ)
    if profile_name and config_file_path.is_file():
        values.update(load_profile(config_file_path, profile_name))

    for env_key, field_name in _ENV_KEYS.items():
        if env_key in environ:
            values[field_name] = environ[env_key]

    config = ServerConfig(**_coerce(values))

    if config.use_https:
        if not config.cert_path or not config.key_path:
            raise RuntimeError("CERT_PATH and KEY_PATH must be set when USE_HTTPS=true")
        if "port" not in values:
            config.port = 443
        if "host" not in values:
            config.host = "0.0.0.0"

    return config


def load_profile(config_file_path: pathlib.Path, profile_name: str) -> Dict[str, Any]:
    with open(config_file_path, "rb") as f:
        document = tomllib.load(f)
    profiles = document.get("profile", {})
    if profile_name not in profiles:
        raise ValueError(f"Profile {profile_name!r} not found in {config_file_path}")
    return dict(profiles[profile_name])


# Returns the path of the settings file, based on the current operating
# system, unless MINESWEEPER_CONFIG_FILE points somewhere else.
def get_config_file_path(environ: Optional[Dict[str, str]] = None) -> pathlib.Path:
    environ = os.environ if environ is None else environ
    explicit = environ.get("MINESWEEPER_CONFIG_FILE")
    if explicit:
        return pathlib.Path(explicit)

    home = pathlib.Path.home()
    system = platform.system()

    if system == "Darwin":
        config_file_path = home / "Library/Application Support/minesweeper/server.toml"
    elif system == "Windows":
        app_data = environ.get("AppData")
        if app_data is None:
            raise RuntimeError("AppData environment variable not set")
        config_file_path = pathlib.Path(app_data) / "minesweeper/server.toml"
    else:
        xdg_config_home = environ.get("XDG_CONFIG_HOME")
        if xdg_config_home:
            config_file_path = (
                pathlib.Path(xdg_config_home) / "minesweeper/server.toml"
            )
        else:
            config_file_path = home / ".config/minesweeper/server.toml"

    return config_file_path
