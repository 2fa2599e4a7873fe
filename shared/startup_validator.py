"""
Startup configuration validation module.

This module provides startup-time validation for critical configuration
to catch misconfigurations early (fail-fast) rather than on the first
swap request.

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

from sqlalchemy.engine import make_url

from shared.config import get_settings

logger = logging.getLogger(__name__)

PLACEHOLDER_JWT_SECRET = "change-me-jwt-secret"
MIN_JWT_SECRET_LENGTH = 32


class StartupValidationError(Exception):
    """Raised when critical startup validation fails."""

    pass


async def validate_startup_config(check_database: bool = True) -> dict[str, bool]:
    """
    Validate all critical configuration at startup.

    Performs tiered validation:
    - TIER 1 (CRITICAL): Block startup if any fail
    - TIER 2 (IMPORTANT): Warn but allow startup

    Args:
        check_database: Also open a connection and run SELECT 1

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

    # 1. JWT secret used to verify caller identity
    if settings.AUTH_JWT_SECRET == PLACEHOLDER_JWT_SECRET:
        critical_failures.append(
            "AUTH_JWT_SECRET is placeholder - set the secret shared with the auth service"
        )
        results["jwt_secret"] = False
    elif (
        settings.AUTH_JWT_ALGORITHM.startswith("HS")
        and len(settings.AUTH_JWT_SECRET) < MIN_JWT_SECRET_LENGTH
    ):
        critical_failures.append(
            f"AUTH_JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters"
        )
        results["jwt_secret"] = False
    else:
        results["jwt_secret"] = True
        logger.info("  [OK] JWT secret configured")

    # 2. Database URL parses and the database answers
    try:
        url = make_url(settings.DATABASE_URL)
        results["database_url_format"] = True
    except Exception as e:
        critical_failures.append(f"DATABASE_URL is not a valid SQLAlchemy URL: {e}")
        results["database_url_format"] = False
        url = None

    if url is not None and check_database:
        results["database_connection"] = await validate_database_connection()
        if not results["database_connection"]:
            critical_failures.append("Database connection failed - check DATABASE_URL")

    # =========================================================================
    # TIER 2: IMPORTANT (warn but allow startup)
    # =========================================================================

    # 3. Production backend
    if url is not None and url.get_backend_name() != "postgresql":
        logger.warning(
            f"DATABASE_URL uses {url.get_backend_name()} - swap transactions are fully "
            f"serialized; use postgresql+asyncpg:// in production"
        )
        results["database_backend"] = False
    elif url is not None:
        results["database_backend"] = True

    # 4. CORS wildcard with credentials
    if "*" in settings.CORS_ORIGINS.split(","):
        logger.warning("CORS_ORIGINS contains '*' - browsers will reject credentialed requests")
        results["cors_origins"] = False
    else:
        results["cors_origins"] = True

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

    Returns:
        True if database connection successful, False otherwise
    """
    from sqlalchemy import text

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
