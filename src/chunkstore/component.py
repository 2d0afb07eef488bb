from __future__ import annotations
from abc import abstractmethod, ABCMeta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import logging
    from chunkstore.api import Api


class ApiComponent(metaclass=ABCMeta):
    """Abstract API component, refrencing main server class and its loggger.

    :param app: Reference to running server class.
    :type app: class:`chunkstore.Api`
    """
    app: Api
    logger: logging.Logger

    def __init__(self, app: Api) -> None:
        self.app = app
        self.logger = app.logger


class ApiManager(ApiComponent, metaclass=ABCMeta):
    """Manager base class.
    A manager represents an external service dependency.
    It holds a connection object and relevant primitives for data state change."""
    @property
    @abstractmethod
    def endpoint(self) -> str:
        """External service endpoint."""
        raise NotImplementedError


class ApiService(ApiComponent, metaclass=ABCMeta):
    """Service base class.
    A Service acts as a translation layer between a controller receiving a request
    and managers executing data state change."""
