"""
Command-line interface for Game Catalog Sync.

Provides commands to run a sync, inspect the cache, and validate
catalog files by hand.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from game_catalog_sync.config import CatalogSourceConfig, get_settings
from game_catalog_sync.logger import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__, component="cli")


class CLIOutput(BaseModel):
    """Structured output for CLI commands."""

    success: bool
    command: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def print_json(output: CLIOutput) -> None:
    """Print output as formatted JSON."""
    print(json.dumps(output.model_dump(mode="json"), indent=2, default=str))


def _option_value(args: list[str], name: str) -> str | None:
    if name in args:
        idx = args.index(name)
        if idx + 1 < len(args):
            return args[idx + 1]
    return None


async def cmd_fetch(args: list[str]) -> None:
    """Run one sync and print the result."""
    from game_catalog_sync.sync import CatalogSyncService

    base = get_settings().catalog
    config = base.model_copy(
        update={
            "url": _option_value(args, "--url") or base.url,
            "fallback_to_bundled": "--no-fallback" not in args and base.fallback_to_bundled,
            "validate_schema": "--no-validate" not in args and base.validate_schema,
            "enforce_https": "--allow-http" not in args and base.enforce_https,
        }
    )

    logger.info("Fetching catalog", url=config.url)

    async with CatalogSyncService() as service:
        result = await service.fetch_catalog(config)

    output = CLIOutput(
        success=True,
        command="fetch",
        data={
            "source": result.source.value,
            "metadata": result.metadata.model_dump(),
            "games": [game.to_wire() for game in result.games],
        },
    )
    print_json(output)


def cmd_validate(path_str: str) -> None:
    """Validate a local catalog file."""
    from game_catalog_sync.sync import BundledCatalogLoader, CatalogValidator

    raw = BundledCatalogLoader(Path(path_str))()
    strict = get_settings().catalog.validate_schema
    report = CatalogValidator().validate(raw, strict=strict)

    output = CLIOutput(
        success=report.valid,
        command="validate",
        data={
            "valid": report.valid,
            "errors": report.errors,
            "accepted": len(report.sanitized or []),
        },
        error=None if report.valid else f"{len(report.errors)} invalid entries",
    )
    print_json(output)


def _build_cache() -> Any:
    from game_catalog_sync.sync import CatalogCache, FileStorage

    settings = get_settings()
    return CatalogCache(
        FileStorage(settings.cache.directory),
        max_age_hours=settings.cache.max_age_hours,
    )


def cmd_clear_cache() -> None:
    """Remove all cached catalog keys."""
    _build_cache().clear()
    print_json(CLIOutput(success=True, command="clear-cache"))


def cmd_cache_info() -> None:
    """Print metadata of the cached catalog."""
    metadata = _build_cache().get_metadata()
    output = CLIOutput(
        success=metadata is not None,
        command="cache-info",
        data=metadata.model_dump(mode="json") if metadata else None,
        error=None if metadata else "No cached catalog",
    )
    print_json(output)


def cmd_test_config() -> None:
    """Test configuration loading."""
    settings = get_settings()
    catalog: CatalogSourceConfig = settings.catalog

    output = CLIOutput(
        success=True,
        command="test-config",
        data={
            "environment": settings.environment,
            "catalog_url": catalog.url,
            "fallback_to_bundled": catalog.fallback_to_bundled,
            "validate_schema": catalog.validate_schema,
            "enforce_https": catalog.enforce_https,
            "fetch_timeout_seconds": settings.fetch.timeout_seconds,
            "fetch_max_attempts": settings.fetch.max_attempts,
            "cache_directory": str(settings.cache.directory),
            "cache_max_age_hours": settings.cache.max_age_hours,
        },
    )
    print_json(output)


def print_usage() -> None:
    """Print CLI usage information."""
    usage = """
Game Catalog Sync CLI
=====================

Usage: game-catalog-sync <command> [arguments]

Commands:
  test-config                 Show effective configuration
  fetch                       Resolve the catalog (remote -> cached -> bundled)
  validate <path>             Validate a local catalog JSON file
  clear-cache                 Remove the cached catalog and its metadata
  cache-info                  Show metadata of the cached catalog

Options (fetch):
  --url <url>                 Catalog URL (overrides CATALOG_URL)
  --no-fallback               Do not fall back to the bundled catalog
  --no-validate               Structural validation only
  --allow-http                Accept a plain http catalog URL

Examples:
  game-catalog-sync fetch --url https://example.com/catalog.json
"""
    print(usage)


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1]
    args = sys.argv[2:]

    try:
        if command == "test-config":
            cmd_test_config()

        elif command == "fetch":
            asyncio.run(cmd_fetch(args))

        elif command == "validate":
            if not args:
                print("Error: path required")
                sys.exit(1)
            cmd_validate(args[0])

        elif command == "clear-cache":
            cmd_clear_cache()

        elif command == "cache-info":
            cmd_cache_info()

        elif command in ("help", "--help", "-h"):
            print_usage()

        else:
            print(f"Unknown command: {command}")
            print_usage()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error", error=str(e))
        output = CLIOutput(
            success=False,
            command=command,
            error=str(e),
        )
        print_json(output)
        sys.exit(1)


if __name__ == "__main__":
    main()
