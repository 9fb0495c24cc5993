"""
설정 검증 유틸리티.

애플리케이션 시작 시 필수 설정을 검증합니다.
프로덕션 환경에서만 실행됩니다.
"""
import logging
import os
from pathlib import Path
from typing import List

from gallery_api.config import Environment, Settings, get_settings

logger = logging.getLogger("gallery_api.config_validator")

DEFAULT_JWT_SECRET = "jwt-secret-change-in-production"


async def validate_configuration() -> None:
    """
    애플리케이션 설정을 검증합니다.

    프로덕션 환경에서만 실행됩니다.
    검증 실패 시 예외를 발생시켜 애플리케이션 시작을 중단합니다.
    """
    settings = get_settings()

    # 개발 환경에서는 스킵
    if settings.environment != Environment.PRODUCTION:
        logger.info(
            "Config validation skipped (not production)",
            extra={"event": "config", "environment": settings.environment.value},
        )
        return

    logger.info("Starting configuration validation", extra={"event": "config"})

    errors: List[str] = []
    errors.extend(_validate_security_config(settings))
    errors.extend(_validate_directory(settings.data_dir, "DATA_DIR"))
    errors.extend(_validate_directory(settings.uploads_dir, "UPLOADS_DIR"))

    if errors:
        error_summary = "\n".join(f"  - {e}" for e in errors)
        raise ValueError(
            f"Configuration validation failed:\n{error_summary}\n"
            "Please check your environment variables and configuration."
        )

    logger.info(
        "Configuration validation completed successfully",
        extra={"event": "config"},
    )


def _validate_security_config(settings: Settings) -> List[str]:
    """JWT / CORS 설정 검증."""
    errors: List[str] = []

    if not settings.jwt_secret_key or settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        errors.append("JWT_SECRET_KEY must be set to a non-default value")
    elif len(settings.jwt_secret_key) < 32:
        logger.warning(
            "JWT_SECRET_KEY is shorter than 32 characters",
            extra={"event": "config"},
        )

    if "*" in settings.cors_origins:
        logger.warning(
            "CORS allows every origin",
            extra={"event": "config"},
        )

    return errors


def _validate_directory(path: Path, env_name: str) -> List[str]:
    """디렉터리가 없으면 생성하고 쓰기 가능 여부를 확인."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return [f"{env_name} ({path}) could not be created: {e}"]

    if not os.access(path, os.W_OK):
        return [f"{env_name} ({path}) is not writable"]

    logger.info(f"{env_name}: OK", extra={"event": "config", "path": str(path)})
    return []
