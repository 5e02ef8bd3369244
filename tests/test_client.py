"""Unit tests for the gateway login handshake"""
import unittest
from unittest import mock
from urllib.parse import parse_qs

import requests
import responses

from duo_gateway.client import DuoClient
from duo_gateway.config import IDPAccount
from duo_gateway.errors import (AssertionNotFound, ChallengeTokensNotFound,
                                InitialFetchFailed, MfaDeviceAuthFailed,
                                TransportError)
from duo_gateway.models import LoginDetails, MfaPreference
from duo_gateway.saml import pin_to_origin

GATEWAY = "https://gw.example.com"
SSO_URL = GATEWAY + "/dag/saml2/idp/SSOService.php"
POST_ACTION = "/dag/module.php/duosecurity/getstatus.php"
CALLBACK_URL = GATEWAY + POST_ACTION
DUO_HOST = "api-1234.duosecurity.com"
LOGIN_PATH = GATEWAY + "/dag/module.php/core/loginuserpass.php"

LOGIN_PAGE = """
<form method="post" action="https://elsewhere.example.com/login">
  <input name="username"><input name="password" type="password">
  <input type="hidden" name="csrf" value="abc123">
</form>
"""

DUO_PAGE = f"""
<iframe id="duo_iframe" data-host="{DUO_HOST}"
        data-sig-request="TX|abc:APP|def"
        data-post-action="{POST_ACTION}"></iframe>
"""

SAML_PAGE = '<form><input type="hidden" name="SAMLResponse" value="PHNhbWw+..."/></form>'


class TestDuoClient(unittest.TestCase):

    def setUp(self):
        self.login = LoginDetails(url=GATEWAY, username="jdoe", password="s3cret")
        self.prompter = mock.Mock()
        self.prompter.choose.return_value = 0

    def client(self, mfa=MfaPreference.AUTO):
        return DuoClient(IDPAccount(url=GATEWAY, mfa=mfa, poll_interval=0), prompter=self.prompter)

    @responses.activate
    def test_authenticate_with_duo_push(self):
        responses.add(responses.GET, SSO_URL, body=LOGIN_PAGE)
        responses.add(responses.POST, SSO_URL, body=DUO_PAGE)
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/web/v1/auth",
                      body='<input name="sid" value="SID1">')
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/prompt",
                      json={"stat": "OK", "response": {"txid": "TXID-1"}})
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/status",
                      json={"stat": "OK", "response": {"result": "SUCCESS",
                                                       "result_url": "/frame/status/TXID-1"}})
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/status/TXID-1",
                      json={"stat": "OK", "response": {"cookie": "AUTH|cookie"}})
        responses.add(responses.POST, CALLBACK_URL, body=SAML_PAGE)

        with self.client() as client:
            assertion = client.authenticate(self.login)

        self.assertEqual(assertion, "PHNhbWw+...")

        get_sso = responses.calls[0].request
        self.assertIn("spentityid=DI8ESCQGSFOJRBUQSBVI", get_sso.url)

        login_post = responses.calls[1].request
        self.assertTrue(login_post.url.startswith(SSO_URL))
        self.assertEqual(parse_qs(login_post.body, keep_blank_values=True), {
            "_eventId_proceed": [""],
            "username": ["jdoe"],
            "password": ["s3cret"],
            "csrf": ["abc123"],
        })

        frame_init = parse_qs(responses.calls[2].request.body, keep_blank_values=True)
        self.assertEqual(frame_init["parent"], [CALLBACK_URL])

        sig_post = responses.calls[-1].request
        self.assertEqual(sig_post.url, CALLBACK_URL)
        self.assertEqual(parse_qs(sig_post.body), {
            "_eventId": ["proceed"],
            "sig_response": ["AUTH|cookie:APP|def"],
        })

    @responses.activate
    def test_authenticate_without_mfa(self):
        responses.add(responses.GET, SSO_URL, body=LOGIN_PAGE)
        responses.add(responses.POST, SSO_URL, body=SAML_PAGE)

        assertion = self.client(MfaPreference.NONE).authenticate(self.login)

        self.assertEqual(assertion, "PHNhbWw+...")
        self.assertEqual(len(responses.calls), 2)
        self.prompter.choose.assert_not_called()

    @responses.activate
    def test_initial_fetch_failure(self):
        responses.add(responses.GET, SSO_URL, status=503)

        with self.assertRaises(InitialFetchFailed):
            self.client().authenticate(self.login)

    @responses.activate
    def test_login_without_duo_challenge(self):
        responses.add(responses.GET, SSO_URL, body=LOGIN_PAGE)
        responses.add(responses.POST, SSO_URL, body="<p>Incorrect username or password</p>")

        with self.assertRaises(ChallengeTokensNotFound):
            self.client().authenticate(self.login)

    @responses.activate
    def test_denied_push(self):
        responses.add(responses.GET, SSO_URL, body=LOGIN_PAGE)
        responses.add(responses.POST, SSO_URL, body=DUO_PAGE)
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/web/v1/auth",
                      body='<input name="sid" value="SID1">')
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/prompt",
                      json={"stat": "OK", "response": {"txid": "TXID-1"}})
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/status",
                      json={"stat": "OK", "response": {"result": "FAILURE"}})

        with self.assertRaises(MfaDeviceAuthFailed) as ctx:
            self.client().authenticate(self.login)

        self.assertTrue(str(ctx.exception).startswith(
            "error verifying MFA: error when interacting with Duo iframe: "))
        self.assertNotIn(CALLBACK_URL, [call.request.url for call in responses.calls])

    @responses.activate
    def test_final_page_without_assertion(self):
        responses.add(responses.GET, SSO_URL, body=LOGIN_PAGE)
        responses.add(responses.POST, SSO_URL, body="<html>no assertion</html>")

        with self.assertRaises(AssertionNotFound):
            self.client(MfaPreference.NONE).authenticate(self.login)

    def test_skip_verify_disables_tls_checks(self):
        client = DuoClient(IDPAccount(url=GATEWAY, skip_verify=True), prompter=self.prompter)

        self.assertFalse(client.get_session().verify)

    def test_skip_verify_leaves_injected_session_alone(self):
        session = requests.Session()
        client = DuoClient(IDPAccount(url=GATEWAY, skip_verify=True), prompter=self.prompter, session=session)

        self.assertIs(client.get_session(), session)
        self.assertTrue(session.verify)

    @responses.activate
    def test_login_form_posted_to_redirect_target(self):
        responses.add(responses.GET, SSO_URL, status=302,
                      headers={"Location": LOGIN_PATH + "?AuthState=x"})
        responses.add(responses.GET, LOGIN_PATH, body=LOGIN_PAGE)
        responses.add(responses.POST, LOGIN_PATH, body=SAML_PAGE)

        assertion = self.client(MfaPreference.NONE).authenticate(self.login)

        self.assertEqual(assertion, "PHNhbWw+...")
        login_post = responses.calls[-1].request
        self.assertEqual(login_post.method, "POST")
        self.assertEqual(login_post.url, LOGIN_PATH + "?AuthState=x")

    @responses.activate
    def test_login_post_failure_names_stage(self):
        responses.add(responses.GET, SSO_URL, body=LOGIN_PAGE)
        responses.add(responses.POST, SSO_URL, status=500)

        with self.assertRaises(TransportError) as ctx:
            self.client().authenticate(self.login)

        self.assertNotIsInstance(ctx.exception, InitialFetchFailed)
        self.assertTrue(str(ctx.exception).startswith("error retrieving login form results: "))

    @responses.activate
    def test_sig_response_failure_names_stage(self):
        responses.add(responses.GET, SSO_URL, body=LOGIN_PAGE)
        responses.add(responses.POST, SSO_URL, body=DUO_PAGE)
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/web/v1/auth",
                      body='<input name="sid" value="SID1">')
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/prompt",
                      json={"stat": "OK", "response": {"txid": "TXID-1"}})
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/status",
                      json={"stat": "OK", "response": {"result": "SUCCESS",
                                                       "result_url": "/frame/status/TXID-1"}})
        responses.add(responses.POST, f"https://{DUO_HOST}/frame/status/TXID-1",
                      json={"stat": "OK", "response": {"cookie": "AUTH|cookie"}})
        responses.add(responses.POST, CALLBACK_URL, status=502)

        with self.assertRaises(TransportError) as ctx:
            self.client().authenticate(self.login)

        self.assertTrue(str(ctx.exception).startswith(
            "error verifying MFA: error retrieving verify response: "))


class TestPinToOrigin(unittest.TestCase):

    def test_replaces_scheme_and_host(self):
        self.assertEqual(pin_to_origin("http://other.example.com/login?a=1", "https://gw.example.com/x"),
                         "https://gw.example.com/login?a=1")
