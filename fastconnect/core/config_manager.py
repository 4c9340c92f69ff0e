import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import aiofiles

from .logging_utils import get_module_logger
from .paths import CONFIG_PATH, DEFAULT_SAVE_STATE_FILE


logger = get_module_logger("ConfigManager")

PathLike = Union[str, Path]

FAST_CONNECT_KEY = "fast_connect"
SAVE_STATE_FILE_KEY = "save_state_file"
ROLLBACK_KEY = "rollback_on_failure"

_TRUE_WORDS = ('true', '1', 'yes', 'on')


@dataclass
class FastConnectConfig:
    """Settings consulted by the saved-state store and its callers."""
    fast_connect_supported: bool = False
    save_state_file: str = str(DEFAULT_SAVE_STATE_FILE)
    rollback_on_failure: bool = False


class ConfigManager:

    @staticmethod
    def _parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
        config: Dict[str, str] = {}

        for raw_line in lines:
            line = raw_line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                continue

            key, value = line.split('=', 1)
            key = key.strip()
            value = value.strip()

            if '#' in value:
                value = value.split('#')[0].strip()

            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                value = value[1:-1]

            config[key] = value

        return config

    def read_config(self, config_path: PathLike) -> Dict[str, str]:
        config_path = Path(config_path)
        if not config_path.exists():
            logger.debug("Config file not found: %s", config_path)
            return {}

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return self._parse_config_lines(f)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read config %s: %s", config_path, e)
            return {}

    async def read_config_async(self, config_path: PathLike) -> Dict[str, str]:
        """Async version for use in async contexts."""
        config_path = Path(config_path)
        if not await asyncio.to_thread(config_path.exists):
            logger.debug("Config file not found: %s", config_path)
            return {}

        try:
            lines: list[str] = []
            async with aiofiles.open(config_path, 'r', encoding='utf-8') as f:
                async for line in f:
                    lines.append(line)
            return self._parse_config_lines(lines)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read config %s: %s", config_path, e)
            return {}

    def get_bool(self, config: Dict[str, str], key: str, default: bool = False) -> bool:
        if key not in config:
            return default

        return config[key].lower() in _TRUE_WORDS

    def get_str(self, config: Dict[str, str], key: str, default: str = "") -> str:
        return config.get(key, default)

    def to_fast_connect_config(self, config: Dict[str, str]) -> FastConnectConfig:
        defaults = FastConnectConfig()
        return FastConnectConfig(
            fast_connect_supported=self.get_bool(config, FAST_CONNECT_KEY, defaults.fast_connect_supported),
            save_state_file=self.get_str(config, SAVE_STATE_FILE_KEY, defaults.save_state_file) or defaults.save_state_file,
            rollback_on_failure=self.get_bool(config, ROLLBACK_KEY, defaults.rollback_on_failure),
        )


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    return _config_manager


def load_fast_connect_config(config_path: Optional[PathLike] = None) -> FastConnectConfig:
    """Read ``fast_connect``, ``save_state_file`` and ``rollback_on_failure``."""
    manager = get_config_manager()
    config = manager.read_config(config_path or CONFIG_PATH)
    return manager.to_fast_connect_config(config)


async def load_fast_connect_config_async(config_path: Optional[PathLike] = None) -> FastConnectConfig:
    manager = get_config_manager()
    config = await manager.read_config_async(config_path or CONFIG_PATH)
    return manager.to_fast_connect_config(config)


__all__ = [
    "ConfigManager",
    "FastConnectConfig",
    "get_config_manager",
    "load_fast_connect_config",
    "load_fast_connect_config_async",
]
