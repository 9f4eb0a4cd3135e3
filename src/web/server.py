"""
Web Server for Raft Configuration
Servidor web de solo lectura que expone la configuración validada del nodo
"""

import random
from datetime import datetime
from typing import Optional

from aiohttp import web

from src.raft.config import RaftConfig


class ConfigWebServer:
    """
    Servidor web que expone la configuración del nodo

    Endpoints:
    - GET /api/config: Configuración completa
    - GET /api/election-timeout: Un timeout de elección recién sorteado

    Ningún endpoint modifica la configuración.
    """

    def __init__(
        self,
        config: RaftConfig,
        host: str = 'localhost',
        port: int = 8080,
        rng: Optional[random.Random] = None
    ):
        """
        Args:
            config: Configuración ya validada
            host: Interfaz donde escuchar
            port: Puerto del servidor web
            rng: Fuente de aleatoriedad para los timeouts
        """
        self.config = config
        self.host = host
        self.port = port
        self.rng = rng
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._setup_routes()

    def _setup_routes(self):
        """Configura las rutas del servidor"""
        self.app.router.add_get('/api/config', self.get_config)
        self.app.router.add_get('/api/election-timeout', self.get_election_timeout)

    async def get_config(self, request):
        """
        GET /api/config

        Retorna todos los campos, la política de snapshot en forma 'since_last:<num>'
        """
        return web.json_response({
            'cluster_name': self.config.cluster_name,
            'config': self.config.to_dict(),
            'timestamp': datetime.now().isoformat()
        })

    async def get_election_timeout(self, request):
        """
        GET /api/election-timeout

        Sortea un timeout nuevo en cada llamada
        """
        low, high = self.config.election_timeout_bounds()
        return web.json_response({
            'election_timeout': self.config.new_rand_election_timeout(self.rng),
            'min': low,
            'max': high
        })

    async def start(self):
        """Inicia el servidor web"""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.host, self.port)
        await site.start()
        print(f" Configuración disponible en: http://{self.host}:{self.port}/api/config")

    async def stop(self):
        """Detiene el servidor web"""
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
