import json
import logging

from config import config
from middlewares import parse_body
from routes import parse_path_parameters, parse_query_parameters, routes

logging.basicConfig(
    level=getattr(logging, config.app.log_level.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


def _error(status_code: int, comment: str, error: str) -> dict:
    return {
        'statusCode': status_code,
        'isBase64Encoded': False,
        'headers': {
            'Content-Type': 'application/json',
        },
        'body': json.dumps({
            'success': False,
            'comment': comment,
            'error': error
        })
    }


def handle_api_gateway_event(event_raw, context):
    try:
        event, response, context = parse_body(event_raw, context, None)
        path = event['path']
        method = event['httpMethod'].upper()
        if not path.startswith('/'):
            path = f'/{path}'
        path, query_params = parse_query_parameters(path)
        if len(path) > 1 and path.endswith('/'):
            path = path[:-1]

        try:
            route, path_params = parse_path_parameters(path)
        except KeyError:
            route, path_params = None, {}
        logger.debug("Route: %s, method: %s, path params: %s, query params: %s", route, method, path_params, query_params)
        if query_params:
            event['queryStringParameters'] = {**(event.get('queryStringParameters') or {}), **query_params}
        if path_params:
            event['pathParameters'] = path_params

        if route in routes and method in routes[route]:
            action = routes[route][method]
            _, response, _ = action(event, response, context)
            return response.body

        return _error(404, 'ACTION_NOT_FOUND', f'No route found for "{path}" with method "{method}"')
    except Exception:
        logger.exception("Unhandled error while handling %s", event_raw.get('path'))
        return _error(500, 'INTERNAL_SERVER_ERROR', 'An unexpected error occurred')


def lambda_handler(event, context):
    # If the event has a path, it is an API Gateway event, so handle API call
    if event.get("path"):
        logger.info("Handling API Gateway event %s %s", event.get('httpMethod'), event.get('path'))
        return handle_api_gateway_event(event, context)
    logger.warning("Ignoring event without a path")
    return _error(400, 'UNSUPPORTED_EVENT', 'Only API Gateway events are supported')


def invoke(event, verbose=False):
    result = lambda_handler({
        **event,
        "headers": {
            'Content-Type': 'application/json',
            **(event.get('headers', {}))
        }
    }, {})
    if verbose: print(json.dumps(result, indent=2))
    return result


if __name__ == "__main__":
    invoke({"path": 'health', "httpMethod": 'GET'}, verbose=True)
