"""
Wire server main entry point.

Loads the JSON config, configures logging, builds the state codec and the
component registry, registers the built-in components and serves wire
requests until interrupted.

Usage:
    python -m wire.main [--config path/to/config.json]

Config keys (all optional):
    host, port, basePath  - HTTP binding and wire path prefix
    secretKey             - state signing secret; generated when missing,
                            which invalidates all tokens on every restart
    logging               - {logDir, level, console, utc}
"""

import asyncio
import argparse
import sys
import orjson
from pathlib import Path
from typing import Any, Dict

from wire.components import Counter
from wire.core.componentState import StateCodec, generateSecretKey
from wire.core.registry import ComponentRegistry
from wire.server.server import WireServer
from wire.logging import getLogger, configureLogging

DEFAULT_CONFIG_PATH = 'wire/config.json'


def loadConfig(configPath: str) -> dict:
    """Load configuration from JSON file"""
    with open(configPath, 'rb') as f:
        return orjson.loads(f.read())


def buildCodec(config: Dict[str, Any]) -> StateCodec:
    """
    State codec from config.

    A missing secret is replaced by a random one. Tokens then do not survive
    a restart: browsers holding old state get zero-value components.
    """
    log = getLogger()
    secretKey = config.get('secretKey')
    if not secretKey:
        log.warning("[Main] No secretKey configured, generated one; "
                    "component state will not survive a restart")
        secretKey = generateSecretKey()
    return StateCodec(secretKey)


def buildRegistry(config: Dict[str, Any]) -> ComponentRegistry:
    """Registry with the built-in components registered"""
    registry = ComponentRegistry(buildCodec(config))
    registry.registerComponent(Counter)
    return registry


def main():
    """Main entry point - runs the wire server"""
    parser = argparse.ArgumentParser(description='Wire - server-driven component server')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Path to config file')
    args = parser.parse_args()

    configPath = Path(args.config)
    if not configPath.exists():
        configureLogging()
        getLogger().error(f"Config file not found: {args.config}")
        sys.exit(1)

    config = loadConfig(str(configPath))

    loggingConfig = config.get('logging', {})
    configureLogging(
        logDir=loggingConfig.get('logDir'),
        level=loggingConfig.get('level', 'INFO'),
        console=loggingConfig.get('console', True),
        utc=loggingConfig.get('utc', False)
    )
    log = getLogger()
    log.info(f"[Main] Config: {args.config}")

    server = WireServer(config, buildRegistry(config))

    async def runServer():
        try:
            await server.start()

            # Keep running
            while True:
                await asyncio.sleep(1)

        except asyncio.CancelledError:
            log.info("[Main] Shutdown signal received")
        except Exception as e:
            log.error(f"[Main] Fatal error: {e}", exc_info=True)
        finally:
            await server.stop()
            log.info("[Main] Server stopped")

    try:
        asyncio.run(runServer())
    except KeyboardInterrupt:
        pass


if __name__ == '__main__':
    main()
