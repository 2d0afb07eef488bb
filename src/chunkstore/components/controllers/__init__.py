from .controller import Controller, HttpMethod
from .resourcecontroller import ResourceController
