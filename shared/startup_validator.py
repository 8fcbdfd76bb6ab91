"""
Startup configuration validation module.

This module provides startup-time validation for critical configuration
to catch misconfigurations early (fail-fast) rather than when the first
seed runs or the first admin tries to delete a production.

Usage:
    from shared.startup_validator import validate_startup_config, StartupValidationError

    async def main():
        try:
            await validate_startup_config()
        except StartupValidationError as e:
            logger.critical(f"Startup blocked: {e}")
            sys.exit(1)
"""

import logging

from sqlalchemy import text

from shared.config import get_settings

logger = logging.getLogger(__name__)

MIN_JWT_SECRET_LENGTH = 32


class StartupValidationError(Exception):
    """Raised when critical startup validation fails."""

    pass


async def validate_startup_config(require_admin_auth: bool = True) -> dict[str, bool]:
    """
    Validate all critical configuration at startup.

    Performs tiered validation:
    - TIER 1 (CRITICAL): Block startup if any fail
    - TIER 2 (IMPORTANT): Warn but allow startup

    Args:
        require_admin_auth: If True, ADMIN_JWT_SECRET is CRITICAL.
                            Set to False for processes that only seed.

    Returns:
        dict of {check_name: passed} for all validations

    Raises:
        StartupValidationError: If any CRITICAL check fails
    """
    settings = get_settings()
    results: dict[str, bool] = {}
    critical_failures: list[str] = []

    # =========================================================================
    # TIER 1: CRITICAL (block startup if any fail)
    # =========================================================================

    # 1. Award key fields must name real columns and no primary key
    from database.models import Award
    from database.reconciliation import KeySelector

    try:
        selector = KeySelector.from_setting(Award, settings.AWARD_KEY_FIELDS)
    except ValueError as e:
        critical_failures.append(f"AWARD_KEY_FIELDS is invalid: {e}")
        results["award_key_fields"] = False
    else:
        if selector.primary_key_fields:
            critical_failures.append(
                f"AWARD_KEY_FIELDS must not include primary key "
                f"{', '.join(selector.primary_key_fields)} - unsaved awards have no id, "
                f"so every startup would insert duplicates"
            )
            results["award_key_fields"] = False
        else:
            results["award_key_fields"] = True
            logger.info(f"  [OK] Award key fields: {', '.join(selector.fields)}")

    # 2. Admin JWT secret
    secret_error = None
    if not settings.ADMIN_JWT_SECRET:
        secret_error = (
            "ADMIN_JWT_SECRET is not set - generate one with: openssl rand -hex 32"
        )
    elif len(settings.ADMIN_JWT_SECRET) < MIN_JWT_SECRET_LENGTH:
        secret_error = (
            f"ADMIN_JWT_SECRET should be at least {MIN_JWT_SECRET_LENGTH} characters"
        )

    if secret_error:
        results["admin_jwt_secret"] = False
        if require_admin_auth:
            critical_failures.append(secret_error)
        else:
            logger.warning(f"  [WARN] {secret_error} (not required for this process)")
    else:
        results["admin_jwt_secret"] = True
        logger.info("  [OK] Admin JWT secret configured")

    # =========================================================================
    # TIER 2: IMPORTANT (warn but allow startup)
    # =========================================================================

    # 3. Database URL format validation
    if settings.DATABASE_URL.startswith("sqlite"):
        logger.warning(
            "DATABASE_URL points at SQLite - fine for tests, not for deployment"
        )
        results["database_url_format"] = False
    elif not settings.DATABASE_URL.startswith("postgresql+asyncpg://"):
        logger.warning(
            "DATABASE_URL should use asyncpg driver: postgresql+asyncpg://..."
        )
        results["database_url_format"] = False
    else:
        results["database_url_format"] = True

    # =========================================================================
    # Summary and result
    # =========================================================================

    passed = sum(1 for v in results.values() if v)
    total = len(results)
    logger.info(f"Startup validation: {passed}/{total} checks passed")

    if critical_failures:
        logger.critical("=" * 60)
        logger.critical("STARTUP BLOCKED - Critical configuration errors:")
        for i, failure in enumerate(critical_failures, 1):
            logger.critical(f"  {i}. {failure}")
        logger.critical("=" * 60)
        raise StartupValidationError(
            f"Critical startup validation failed ({len(critical_failures)} errors): "
            f"{'; '.join(critical_failures)}"
        )

    return results


async def validate_database_connection() -> bool:
    """
    Validate database connection is working.

    This is a separate check because it's slower and may be called
    after basic config validation.

    Returns:
        True if database connection successful, False otherwise
    """
    try:
        from database.connection import get_async_session

        async with get_async_session() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()

        logger.info("  [OK] Database connection successful")
        return True

    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
