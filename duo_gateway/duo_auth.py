from typing import Any, Dict, List, Tuple, Union

from requests import RequestException, Response, Session

from duo_gateway.errors import TransportError

FormData = Union[Dict[str, str], List[Tuple[str, str]]]

FRAME_HEADERS = {'Content-Type': 'application/x-www-form-urlencoded'}


def send_request(session: Session, method: str, url: str, **kwargs) -> Response:
    """Send a request and turn any HTTP failure into a TransportError."""
    try:
        response = session.request(method, url, **kwargs)
        response.raise_for_status()
    except RequestException as err:
        raise TransportError(f"{method} {url} failed: {err}") from err
    return response


def read_json(response: Response) -> Dict[str, Any]:
    """Decode a Duo JSON body"""
    try:
        body = response.json()
    except ValueError as err:
        raise TransportError(f"{response.url} did not return JSON") from err

    if not isinstance(body, dict):
        raise TransportError(f"{response.url} did not return a JSON object")
    return body


def response_field(body: Dict[str, Any]) -> Dict[str, Any]:
    """Return the "response" object of a Duo body, empty when absent or not an object"""
    response = body.get("response")
    return response if isinstance(response, dict) else {}


def post_auth_frame(session: Session, duo_host: str, tx: str, parent: str) -> Response:
    """Send post request to open the Duo frame"""
    payload = [
        ('parent', parent),
        ('java_version', ''),
        ('java_version', ''),
        ('flash_version', ''),
        ('screen_resolution_width', '3008'),
        ('screen_resolution_height', '1692'),
        ('color_depth', '24'),
    ]
    return send_request(session, 'POST', f'https://{duo_host}/frame/web/v1/auth',
                        params={'tx': tx}, data=payload, headers=FRAME_HEADERS)


def post_prompt(session: Session, duo_host: str, payload: FormData) -> Response:
    """Send post request for authentication"""
    return send_request(session, 'POST', f'https://{duo_host}/frame/prompt',
                        data=payload, headers=FRAME_HEADERS)


def get_status(session: Session, duo_host: str, payload: FormData) -> Response:
    """Send post request for duo prompt status"""
    return send_request(session, 'POST', f'https://{duo_host}/frame/status',
                        data=payload, headers=FRAME_HEADERS)


def post_result(session: Session, duo_host: str, result_url: str, payload: FormData) -> Response:
    """Send post request for the signed result cookie"""
    return send_request(session, 'POST', f'https://{duo_host}{result_url}',
                        data=payload, headers=FRAME_HEADERS)
