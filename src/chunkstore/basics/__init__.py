from .rootcontroller import RootController
