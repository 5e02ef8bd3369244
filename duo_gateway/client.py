import logging
from typing import Optional

import requests as req

from duo_gateway import parser, saml
from duo_gateway.config import IDPAccount
from duo_gateway.errors import (AssertionNotFound, DuoGatewayError,
                                InitialFetchFailed, TransportError)
from duo_gateway.mfa import DuoMfaDriver
from duo_gateway.models import LoginDetails, MfaPreference
from duo_gateway.prompter import ConsolePrompter, Prompter


class DuoClient:
    """A client that logs in through a Duo Access Gateway and returns the SAML assertion."""

    def __init__(self,
                 account: IDPAccount,
                 prompter: Optional[Prompter] = None,
                 session: Optional[req.Session] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the Duo client.

        Args:
            account: Gateway profile settings
            prompter: Used to pick the Duo factor, defaults to the console
            session: HTTP session, a new one is created if omitted. An injected
                session is used as is, skip_verify only applies to a created one
            logger: Defaults to this module's logger
        """
        self.account = account
        self.prompter = prompter or ConsolePrompter()
        self.logger = logger or logging.getLogger(__name__)
        if session is None:
            session = req.Session()
            if account.skip_verify:
                session.verify = False
        self.session = session

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close session."""
        self.session.close()

    def authenticate(self, login_details: LoginDetails) -> str:
        """
        Perform the full gateway login.

        Args:
            login_details: Gateway URL and user credentials

        Returns:
            The base64 encoded SAMLResponse
        """
        # Step 1: Fetch the login page
        try:
            response = saml.get_sso_page(self.session, login_details.url, self.account.sp_entity_id)
        except TransportError as err:
            raise InitialFetchFailed(f"error retrieving form: {err}") from err

        # Step 2: Submit credentials
        form = parser.build_login_form(response.text, response.url, login_details)
        if form.declared_actions:
            self.logger.debug("ignoring declared form actions %s", form.declared_actions)

        self.logger.debug("submitting login form to %s", form.target_url)
        try:
            response = saml.post_login_form(self.session, form, response.url)
        except TransportError as err:
            raise TransportError(f"error retrieving login form results: {err}") from err

        # Step 3: Duo authentication
        if self.account.mfa is MfaPreference.AUTO:
            try:
                response = self._verify_mfa(login_details, response.text)
            except DuoGatewayError as err:
                raise type(err)(f"error verifying MFA: {err}") from err

        # Step 4: Extract the assertion
        try:
            return parser.extract_saml_response(response.text)
        except AssertionNotFound as err:
            raise AssertionNotFound(
                f"error extracting SAMLResponse blob from final Duo Access Gateway response: {err}") from err

    def _verify_mfa(self, login_details: LoginDetails, html: str) -> req.Response:
        """Run the Duo challenge and post the signed response back to the gateway."""
        tokens = parser.extract_challenge_tokens(html)
        parent = login_details.url + tokens.post_action

        driver = DuoMfaDriver(self.session,
                              self.prompter,
                              logger=self.logger,
                              poll_interval=self.account.poll_interval,
                              max_polls=self.account.max_polls)
        try:
            cookie = driver.verify(tokens, parent)
        except DuoGatewayError as err:
            raise type(err)(f"error when interacting with Duo iframe: {err}") from err

        self.logger.debug("posting Duo signature to %s", parent)
        try:
            return saml.post_sig_response(self.session, parent, cookie, tokens.app_sig)
        except TransportError as err:
            raise TransportError(f"error retrieving verify response: {err}") from err

    def get_session(self) -> req.Session:
        """Get the authenticated session object."""
        return self.session
