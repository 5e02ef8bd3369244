import html as htmllib
from typing import Optional

from bs4 import BeautifulSoup

from duo_gateway.errors import (AssertionNotFound, ChallengeTokensNotFound,
                                MalformedSignature, MissingSubmitURL,
                                SessionIDNotFound)
from duo_gateway.models import ChallengeTokens, FormSubmission, LoginDetails

EVENT_ID_PROCEED = '_eventId_proceed'


def build_login_form(html: str, location: Optional[str], login_details: LoginDetails) -> FormSubmission:
    """
    Fill in the gateway login form with the user's credentials.

    Args:
        html: Login page markup
        location: URL the page was served from, after redirects
        login_details: Credentials to inject

    Returns:
        FormSubmission targeting the page's own location
    """
    if not location:
        raise MissingSubmitURL("unable to locate IDP authentication form submit URL")

    soup = BeautifulSoup(html, 'html.parser')
    fields = {EVENT_ID_PROCEED: ''}

    for elem in soup.find_all('input'):
        name = elem.get('name')
        if not name:
            continue

        lname = name.lower()
        if 'user' in lname or 'email' in lname:
            fields[name] = login_details.username
        elif 'pass' in lname:
            fields[name] = login_details.password
        elif elem.has_attr('value'):
            # hidden state and anti-forgery fields
            fields[name] = elem['value']

    actions = [form['action'] for form in soup.find_all('form') if form.has_attr('action')]

    return FormSubmission(target_url=location, fields=fields, declared_actions=actions)


def _find_data_attr(soup: BeautifulSoup, attr: str) -> str:
    elem = soup.find(attrs={attr: True})
    return elem[attr] if elem else ''


def extract_challenge_tokens(html: str) -> ChallengeTokens:
    """Extract the Duo host, signed request and callback path from the gateway page."""
    soup = BeautifulSoup(html, 'html.parser')
    found = {attr: _find_data_attr(soup, attr)
             for attr in ('data-host', 'data-sig-request', 'data-post-action')}

    missing = [attr for attr, value in found.items() if not value]
    if missing:
        raise ChallengeTokensNotFound(f"Duo challenge attributes not found: {', '.join(missing)}")

    signatures = found['data-sig-request'].split(':')
    if len(signatures) != 2 or not all(signatures):
        raise MalformedSignature("data-sig-request is not of the form TX:APP")

    return ChallengeTokens(mfa_host=found['data-host'],
                           post_action=found['data-post-action'],
                           transaction_sig=signatures[0],
                           app_sig=signatures[1])


def extract_sid(html: str) -> str:
    """Extract the Duo session id from the frame init page."""
    soup = BeautifulSoup(html, 'html.parser')
    sid_elem = soup.find('input', {'name': 'sid'})
    if not sid_elem or not sid_elem.get('value'):
        raise SessionIDNotFound("unable to locate Duo sid in frame response")

    return htmllib.unescape(sid_elem['value'])


def extract_saml_response(html: str) -> str:
    """Extract SAMLResponse from the final gateway page."""
    soup = BeautifulSoup(html, 'html.parser')
    saml_elem = soup.find('input', {'name': 'SAMLResponse'})
    if not saml_elem or not saml_elem.has_attr('value'):
        raise AssertionNotFound("unable to locate SAMLResponse in gateway response")

    return saml_elem['value']
