import time

from routes import route
from utils.timestamps import utc_now

_STARTED = time.monotonic()

@route('health', 'GET')
def health():
    """Report that the API is up.

    Does not require authentication.
    ---
    tags:
        - health
    responses:
        200:
            description: The API is healthy
            content:
                application/json:
                    schema:
                        type: object
                        properties:
                            success:
                                type: boolean
                            message:
                                type: string
                            uptime:
                                type: number
                            timestamp:
                                type: string
                                format: date-time
    """
    return {
        'success': True,
        'message': 'API is healthy',
        'uptime': round(time.monotonic() - _STARTED, 3),
        'timestamp': utc_now().isoformat() + 'Z',
    }
