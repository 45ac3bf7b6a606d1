"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths, PROJECT_ROOT


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    web_host: str
    web_port: int
    log_level: int
    log_dir: Path | None
    stats_cache_enabled: bool


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def default_config() -> AppConfig:
    """settings.yaml이 없을 때 사용하는 기본 설정"""
    return AppConfig(
        db_path=Paths.LEDGER_DB,
        web_host=Defaults.WEB_HOST,
        web_port=Defaults.WEB_PORT,
        log_level=logging.INFO,
        log_dir=None,
        stats_cache_enabled=True,
    )


def _resolve_path(value: str) -> Path:
    """상대 경로는 프로젝트 루트 기준으로 해석"""
    path = Path(value)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigLoadError(f"settings.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return section


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    파일이 없으면 기본 설정을 반환한다.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        ConfigLoadError: 형식이 잘못된 경우
        ValueError: 유효하지 않은 log level, port인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        return default_config()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return default_config()

    if not isinstance(data, dict):
        raise ConfigLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    defaults = default_config()

    database = _section(data, "database")
    web = _section(data, "web")
    logging_config = _section(data, "logging")
    stats = _section(data, "stats")

    db_path = _resolve_path(database["path"]) if database.get("path") else defaults.db_path

    # log level 검증
    level_name = str(logging_config.get("level", Defaults.LOG_LEVEL)).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        raise ValueError(
            f"유효하지 않은 log level입니다: '{level_name}'. "
            f"유효한 값: ['DEBUG', 'INFO', 'WARNING', 'ERROR']"
        )

    try:
        web_port = int(web.get("port", defaults.web_port))
    except (TypeError, ValueError) as e:
        raise ValueError(f"유효하지 않은 web.port입니다: {web.get('port')!r}") from e

    log_dir = _resolve_path(logging_config["dir"]) if logging_config.get("dir") else None

    return AppConfig(
        db_path=db_path,
        web_host=str(web.get("host", defaults.web_host)),
        web_port=web_port,
        log_level=log_level,
        log_dir=log_dir,
        stats_cache_enabled=bool(stats.get("cache_enabled", True)),
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(config_path)

    @property
    def config(self) -> AppConfig:
        """로드된 설정"""
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """Ledger DB 경로"""
        return self.config.db_path

    @property
    def web_host(self) -> str:
        return self.config.web_host

    @property
    def web_port(self) -> int:
        return self.config.web_port

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        config_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(config_path)
