import json
from typing import TYPE_CHECKING

from starlette.responses import Response, PlainTextResponse
import starlette.routing as sr

from chunkstore import config
from chunkstore.components.controllers import Controller
from chunkstore.utils.utils import json_response

if TYPE_CHECKING:
    from chunkstore.api import Api


class RootController(Controller):
    """Bundles service routes located at the root of the app i.e. '/'."""
    def __init__(self, app: 'Api') -> None:
        super().__init__(app)

    def routes(self, **_):
        return [
            sr.Route("/live",   endpoint=self.live),
            sr.Route("/schema", endpoint=self.openapi_schema),
        ]

    @staticmethod
    async def live(_) -> Response:
        """Liveness endpoint.

        ---
        description: Liveness check endpoint
        responses:
            200:
                description: Ok
                content:
                    text/plain:
                        schema:
                            type: string
        """
        return PlainTextResponse("live\n")

    async def openapi_schema(self, _) -> Response:
        """Generates openapi schema.

        ---
        description: Returns full API schema
        responses:
            200:
                description: OpenAPIv3 schema
        """
        return json_response(json.dumps(
            self.app.apispec.get_schema(routes=self.app.routes),
            indent=config.INDENT
        ), status_code=200)
