"""
Basic example using the declarative schema.

Run with: python examples/basic.py
"""

import logging
import sys

from smartenv import ValidationError, define_schema, load_env

schema = define_schema(
    {
        "PORT": {"type": "number", "default": 3000},
        "APP_ENV": {"type": "string", "default": "development"},
        "API_KEY": {"type": "string", "required": True},
        "ENABLE_CACHE": {"type": "boolean", "default": False},
    }
)


def main() -> int:
    logging.basicConfig(level=logging.INFO)

    try:
        env = load_env(schema, strict=True)
    except ValidationError as exc:
        print(f"Failed to load environment:\n{exc}", file=sys.stderr)
        return 1

    print("Environment loaded successfully:")
    print(f"  PORT: {env.PORT}")
    print(f"  APP_ENV: {env.APP_ENV}")
    print(f"  API_KEY: {'***' if env.API_KEY else 'not set'}")
    print(f"  ENABLE_CACHE: {env.ENABLE_CACHE}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
