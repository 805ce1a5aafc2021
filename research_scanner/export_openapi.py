"""Write the service's OpenAPI specification to a YAML file."""

import argparse
import sys
from pathlib import Path
from typing import Any

import structlog
import yaml

from research_scanner.server import get_app

log = structlog.get_logger("research_scanner.export_openapi")

DEFAULT_OUTPUT = Path("docs/openapi.yaml")


def export_openapi_yaml(output_path: Path = DEFAULT_OUTPUT) -> int:
    """Generate the OpenAPI YAML from the FastAPI app definition.

    Args:
        output_path: Where to write the YAML file.

    Returns:
        0 on success, 1 on failure (for CI integration).
    """
    log.info("export.started", output_path=str(output_path))

    try:
        schema: dict[str, Any] = get_app().openapi()
        if not schema:
            raise ValueError("FastAPI app returned an empty OpenAPI schema")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(schema, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    except OSError as e:
        log.error("export.failed.io", error=str(e), output_path=str(output_path))
        print(f"❌ File system error: {e}", file=sys.stderr)
        return 1
    except (ValueError, yaml.YAMLError) as e:
        log.error("export.failed.schema", error=str(e), output_path=str(output_path))
        print(f"❌ Could not export OpenAPI schema: {e}", file=sys.stderr)
        return 1

    size_kb = output_path.stat().st_size / 1024
    log.info("export.completed", output_path=str(output_path), size_kb=round(size_kb, 1))
    print(f"✅ OpenAPI specification exported to {output_path} ({size_kb:.1f} KB)")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="research-scanner-openapi")
    parser.add_argument("output", nargs="?", type=Path, default=DEFAULT_OUTPUT)
    return export_openapi_yaml(parser.parse_args(argv).output)


if __name__ == "__main__":
    sys.exit(main())
