from urllib.parse import urlsplit, urlunsplit

from requests import Response, Session

from duo_gateway.duo_auth import FRAME_HEADERS, send_request
from duo_gateway.models import FormSubmission

SSO_SERVICE_PATH = '/dag/saml2/idp/SSOService.php'


def get_sso_page(session: Session, gateway_url: str, sp_entity_id: str) -> Response:
    """Send get request for the gateway login page"""
    return send_request(session, 'GET', gateway_url + SSO_SERVICE_PATH,
                        params={'spentityid': sp_entity_id})


def pin_to_origin(url: str, origin_url: str) -> str:
    """Replace the scheme and host of url with those of origin_url."""
    origin = urlsplit(origin_url)
    return urlunsplit(urlsplit(url)._replace(scheme=origin.scheme, netloc=origin.netloc))


def post_login_form(session: Session, form: FormSubmission, origin_url: str) -> Response:
    """Submit the credential form"""
    return send_request(session, 'POST', pin_to_origin(form.target_url, origin_url),
                        data=form.fields, headers=FRAME_HEADERS)


def post_sig_response(session: Session, callback_url: str, cookie: str, app_sig: str) -> Response:
    """Submit the signed Duo response back to the gateway"""
    payload = {
        '_eventId': 'proceed',
        'sig_response': f'{cookie}:{app_sig}'
    }

    return send_request(session, 'POST', callback_url, data=payload, headers=FRAME_HEADERS)
