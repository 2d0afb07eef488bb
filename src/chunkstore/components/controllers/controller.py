"""Controller base class."""
from __future__ import annotations
import json
from abc import abstractmethod
from enum import StrEnum
from io import BytesIO
from typing import Any, Dict, List, Type

from marshmallow.schema import Schema, RAISE
from marshmallow.exceptions import ValidationError
import starlette.routing as sr

from chunkstore import config
from chunkstore.component import ApiComponent
from chunkstore.exceptions import DataError, PayloadJSONDecodingError


class HttpMethod(StrEnum):
    """HTTP Methods."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class Controller(ApiComponent):
    """Controller Base class: An APP Component exposing a set of routes mapped to method
    endpoints, and validating request bodies.
    """
    @abstractmethod
    def routes(self, **kwargs) -> List[sr.Route]:
        """Controller routes."""
        raise NotImplementedError

    @staticmethod
    def validate(schema: Type[Schema], data: bytes) -> Dict[str, Any]:
        """Check incoming data against a schema and marshall to python dict.

        :param schema: body schema
        :type schema: Type[Schema]
        :param data: some request body
        :type data: bytes
        :raises DataError: body is not a JSON object, or does not fit schema
        :raises PayloadJSONDecodingError: body is not JSON
        :return: Marshalled python dict.
        :rtype: Dict[str, Any]
        """
        try:
            # Only JSON objects are accepted.
            if BytesIO(data.lstrip()).read(1) != b'{':
                raise ValidationError("Wrong input JSON.")

            json_data = json.loads(data)
            return schema(many=False, unknown=RAISE).load(json_data)

        except ValidationError as ve:
            raise DataError(json.dumps(ve.messages))

        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PayloadJSONDecodingError("Invalid JSON payload.") from e

    @staticmethod
    def dumps(data: Any) -> str:
        return json.dumps(data, indent=config.INDENT)
