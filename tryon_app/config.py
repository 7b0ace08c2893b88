"""Configuration helpers for the virtual try-on studio."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_STARTING_CREDITS = 10


def _as_bool(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class TryOnConfig:
    """Configuration values for the try-on app.

    Secrets such as the Gemini API key are expected to come from the runtime
    environment, while the rest can live in a per-environment YAML file.
    """

    api_key: Optional[str] = None
    image_model: str = DEFAULT_IMAGE_MODEL
    text_model: str = DEFAULT_TEXT_MODEL
    database_path: str = "data/tryon.db"
    starting_credits: int = DEFAULT_STARTING_CREDITS
    request_timeout: float = 20.0
    use_mock_services: bool = False
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "TryOnConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables, which take priority.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("TRYON_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        starting_credits = get_value("starting_credits", str(DEFAULT_STARTING_CREDITS))
        request_timeout = get_value("request_timeout", "20")

        return cls(
            api_key=get_value("google_api_key"),
            image_model=str(get_value("image_model", DEFAULT_IMAGE_MODEL) or DEFAULT_IMAGE_MODEL),
            text_model=str(get_value("text_model", DEFAULT_TEXT_MODEL) or DEFAULT_TEXT_MODEL),
            database_path=str(get_value("database_path", "data/tryon.db") or "data/tryon.db"),
            starting_credits=int(starting_credits or DEFAULT_STARTING_CREDITS),
            request_timeout=float(request_timeout or 20),
            use_mock_services=_as_bool(get_value("use_mock_services")),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` config file."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
