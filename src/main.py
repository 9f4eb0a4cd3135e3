"""
Main Script - Raft Node Configuration
Construye y valida la configuración del nodo; opcionalmente la expone por HTTP

Uso:
    python -m src.main [--serve PORT] [--election-timeout-min 200 ...]
"""

import asyncio
import json
import logging
import os
import platform
import signal
import sys
from typing import List, Optional

from src.raft.builder import build_from_overrides, build_parser, overrides_from_namespace
from src.raft.config import RaftConfig
from src.raft.errors import ConfigError, ConfigValidationError
from src.web.server import ConfigWebServer


logger = logging.getLogger(__name__)

EXIT_INVALID = 1
EXIT_USAGE = 2


def configure_logging():
    """Nivel desde RAFT_LOG_LEVEL (INFO por defecto)"""
    level = os.getenv("RAFT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def make_parser():
    parser = build_parser(
        add_help=True,
        prog="raft-config",
        description="Construye y valida la configuración de un nodo Raft"
    )
    parser.add_argument("--serve", type=int, metavar="PORT", default=None,
                        help="expone la configuración validada por HTTP en PORT")
    parser.add_argument("--host", default="localhost",
                        help="interfaz para --serve (por defecto: localhost)")
    return parser


async def serve(config: RaftConfig, host: str, port: int):
    """Mantiene el servidor corriendo hasta SIGINT/SIGTERM"""
    server = ConfigWebServer(config, host=host, port=port)
    shutdown = asyncio.Event()

    # Maneja señales de terminación (solo en Unix)
    if platform.system() != 'Windows':
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, shutdown.set)

    await server.start()
    try:
        await shutdown.wait()
    finally:
        await server.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Punto de entrada principal"""
    configure_logging()
    if argv is None:
        argv = sys.argv[1:]

    try:
        options = make_parser().parse_args(argv)
        config = build_from_overrides(overrides_from_namespace(options), os.environ)
    except ConfigValidationError as e:
        logger.error("configuración inválida: %s", e)
        return EXIT_INVALID
    except ConfigError as e:
        logger.error("no se pudo construir la configuración: %s", e)
        return EXIT_USAGE

    logger.info(
        "cluster %s: timeout de elección %d-%dms, heartbeat %dms",
        config.cluster_name,
        config.election_timeout_min,
        config.election_timeout_max,
        config.heartbeat_interval
    )
    print(json.dumps(config.to_dict(), indent=2))

    if options.serve is not None:
        try:
            asyncio.run(serve(config, options.host, options.serve))
        except KeyboardInterrupt:
            print("\n Hasta luego!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
