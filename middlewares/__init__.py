from . import authenticate
from . import authorise

import json
import logging

logger = logging.getLogger(__name__)

def parse_body(event_raw, context, response):
    """Decode a JSON request body in place. Bodies that are not JSON are left as they are."""
    event = event_raw
    body = event_raw.get('body')
    if isinstance(body, (str, bytes)) and body:
        try:
            event['body'] = json.loads(body)
        except ValueError as e:
            logger.debug("Request body is not JSON: %s", e)

    return (event, response, context)
