from .utils import json_response, to_it
