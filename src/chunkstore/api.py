"""Chunkstore Server Class."""
from asyncio import wait_for
from contextlib import asynccontextmanager
from inspect import getfullargspec
import logging
from typing import Any, Callable, Dict, List, Optional, Type

from apispec import APISpec
from apispec.ext.marshmallow import MarshmallowPlugin
from starlette_apispec import APISpecSchemaGenerator
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import HTMLResponse
from starlette.requests import Request
from starlette.routing import Route
from starlette.types import ASGIApp

from chunkstore import Scope, config
from chunkstore.basics import RootController
from chunkstore.components.controllers import Controller, ResourceController
from chunkstore.components.services import ResourceService, UploadService
from chunkstore.error import onerror, onhttperror
from chunkstore.managers import (
    LedgerManager,
    MemoryLedgerManager,
    MemoryStoreManager,
    ObjectStoreManager,
    RedisLedgerManager,
    S3Manager,
)
from chunkstore.utils.utils import to_it
from chunkstore import __version__ as CORE_VERSION


CORE_CONTROLLERS: List[Type[Controller]] = [RootController, ResourceController]


# pylint: disable=too-few-public-methods
class TimeoutMiddleware(BaseHTTPMiddleware):
    """Emit timeout signals."""
    def __init__(self, app: ASGIApp, timeout: int = 30) -> None:
        self.timeout = timeout
        super().__init__(app, self.dispatch)

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        try:
            return await wait_for(call_next(request), timeout=self.timeout)
        except TimeoutError:
            return HTMLResponse("Request reached timeout.", status_code=504)


# pylint: disable=too-few-public-methods
class LoggingMiddleware(BaseHTTPMiddleware):
    """Log incomming requests and their outcome."""
    def __init__(self, app: ASGIApp, logger: logging.Logger) -> None:
        self.logger = logger
        super().__init__(app, self.dispatch)

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        response = await call_next(request)
        self.logger.info(
            "%s\t%s\t-\t%s", request.method, request.url.path, response.status_code
        )
        return response


class Api(Starlette):
    """ Main Server class.

    - Sets up and holds managers + OpenAPI schema generator
    - Instanciates services and CORE_CONTROLLERS
      - Sets up routes
    - adds our middlewares
    """
    logger = logging.getLogger(__name__)
    # Managers
    store: ObjectStoreManager
    ledger: LedgerManager
    # Services
    uploads: UploadService
    resources: ResourceService
    # Controllers
    controllers: List[Controller]

    def __init__(
        self,
        *args,
        store: Optional[ObjectStoreManager] = None,
        ledger: Optional[LedgerManager] = None,
        secret_key: Optional[str] = None,
        debug: bool=False,
        test: bool=False,
        **kwargs,
    ) -> None:
        """instanciate server

        :param store: Object store, defaults to one deployed from config
        :type store: Optional[ObjectStoreManager]
        :param ledger: Quota ledger, defaults to one deployed from config
        :type ledger: Optional[LedgerManager]
        :param secret_key: Bearer secret for privileged routes, defaults to config SECRET_KEY
        :type secret_key: Optional[str]
        :param debug: Debug mode, defaults to False
        :type debug: bool, optional
        :param test: Test mode, defaults to False
        :type test: bool, optional
        """
        # Set runtime flag.
        self.scope = Scope.PROD
        self.scope |= Scope.DEBUG if debug else self.scope
        self.scope |= Scope.TEST if test else self.scope

        # Logger.
        logging.basicConfig(
            level=logging.DEBUG if Scope.DEBUG in self.scope else logging.INFO,
            format=(
                "%(asctime)s | %(levelname)-8s | %(module)s:%(funcName)s:%(lineno)d - %(message)s"
            )
        )
        logging.info("Intializing server.")

        self.secret_key = secret_key or (str(config.SECRET_KEY) if config.SECRET_KEY else None)
        if not self.secret_key:
            self.logger.warning("No SECRET_KEY set: privileged routes will refuse every request.")

        # Managers
        self.store = store or self.deploy_store()
        self.ledger = ledger or self.deploy_ledger()

        # Services.
        self.uploads = UploadService(
            app=self, store=self.store, ledger=self.ledger, ttl=config.UPLOAD_TTL
        )
        self.resources = ResourceService(
            app=self, uploads=self.uploads, size_limit=config.UPLOAD_SIZE_LIMIT
        )

        # Controllers.
        self.controllers = []
        routes: List[Route] = []
        for ctrl in CORE_CONTROLLERS:
            routes.extend(self.adopt_controller(ctrl))

        # Schema Generator.
        security_scheme = "Authorization"
        self.apispec = APISpecSchemaGenerator(
            APISpec(
                title=config.API_NAME,
                version=config.API_VERSION,
                openapi_version="3.0.2",
                plugins=[MarshmallowPlugin()],
                info={
                    "description": config.API_DESCRIPTION,
                    "backend": "chunkstore",
                    "backend_version": CORE_VERSION
                },
                security=[{security_scheme: []}]
            )
        )
        self.apispec.spec.components.security_scheme(security_scheme, {
            "type": "http",
            "name": security_scheme.lower(),
            "in": "header",
            "scheme": "bearer",
        })

        super().__init__(
            *args, debug=debug, routes=routes, lifespan=self.lifespan, **kwargs
        )

        # Middlewares -> Stack goes in reverse order.
        self.add_middleware(LoggingMiddleware, logger=self.logger)
        if Scope.DEBUG not in self.scope:
            self.add_middleware(TimeoutMiddleware, timeout=config.SERVER_TIMEOUT)
        # CORS last (i.e. first).
        self.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.CORS_ORIGINS),
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Content-Type", "Authorization"],
            expose_headers=["ETag", "Content-Disposition"],
            max_age=config.CACHE_MAX_AGE
        )

        # Error handlers
        self.add_exception_handler(RuntimeError, onerror)
        self.add_exception_handler(HTTPException, onhttperror)

    def _parse_config(self, prefix: str) -> Dict[str, Any]:
        """Returns config elements starting by prefix.
        :param prefix: prefix
        :type prefix: str
        :return: config subset as a dict
        :rtype: Dict[str, Any]
        """
        return {
            k.lower().split(f"{prefix}_", 1)[-1]: v
            for k, v in config.__dict__.items()
            if k.lower().startswith(f"{prefix}_")
        }

    def deploy_store(self) -> ObjectStoreManager:
        """S3 store if its configuration is complete, in memory store otherwise."""
        margs = set(getfullargspec(S3Manager).args) - set(('self', 'app'))
        conf = self._parse_config('s3')
        if all(conf.get(param) is not None for param in margs):
            self.logger.info("S3 Manager - UP.")
            return S3Manager(app=self, **{k: conf[k] for k in margs})

        self.logger.warning("S3 Manager - SKIPPED (no config), objects are kept in memory.")
        return MemoryStoreManager(app=self)

    def deploy_ledger(self) -> LedgerManager:
        """Redis ledger if REDIS_URL is set, in memory ledger otherwise."""
        if config.REDIS_URL:
            self.logger.info("Redis Ledger - UP.")
            return RedisLedgerManager(
                app=self,
                url=config.REDIS_URL,
                prefix=config.LEDGER_PREFIX,
                tombstone_ttl=config.LEDGER_TOMBSTONE_TTL,
            )

        self.logger.warning("Redis Ledger - SKIPPED (no config), quotas are kept in memory.")
        return MemoryLedgerManager(app=self, tombstone_ttl=config.LEDGER_TOMBSTONE_TTL)

    def adopt_controller(self, controller: Type[Controller], **kwargs) -> List[Route]:
        """Instanciate a controller and return its associated routes."""
        c = controller(app=self, **kwargs)
        # Keep Track of controllers.
        self.controllers.append(c)
        return list(to_it(c.routes()))

    @asynccontextmanager
    async def lifespan(self, _):
        """Release manager connections on shutdown."""
        yield
        for manager in (self.store, self.ledger):
            close = getattr(manager, 'close', None)
            if close:
                await close()
