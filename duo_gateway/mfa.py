import logging
import time
from typing import Callable, Optional

from requests import Session

from duo_gateway import duo_auth, parser
from duo_gateway.errors import (InvalidFactorChoice, MfaDeviceAuthFailed,
                                MfaPollLimitExceeded, ResultCookieMissing)
from duo_gateway.models import (ChallengeTokens, Factor, FactorChoice,
                                MfaSession, PollOutcome, PollState)
from duo_gateway.prompter import Prompter

DEFAULT_POLL_INTERVAL = 3.0
DUO_DEVICE = 'phone1'


class DuoMfaDriver:
    """Drives one conversation with the Duo frame until it yields a signed cookie."""

    def __init__(self,
                 session: Session,
                 prompter: Prompter,
                 logger: Optional[logging.Logger] = None,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 max_polls: Optional[int] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the driver.

        Args:
            session: HTTP session shared with the gateway login
            prompter: Asks the user which factor to use
            logger: Defaults to this module's logger
            poll_interval: Seconds to wait between status polls
            max_polls: Status requests allowed before giving up, None for no limit
            sleep: Called with poll_interval between polls
        """
        self.session = session
        self.prompter = prompter
        self.logger = logger or logging.getLogger(__name__)
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.sleep = sleep

    def verify(self, tokens: ChallengeTokens, parent_url: str) -> str:
        """
        Run the Duo challenge to completion.

        Args:
            tokens: Challenge tokens scraped from the gateway page
            parent_url: Gateway callback the frame reports back to

        Returns:
            The result cookie to combine with the app signature
        """
        mfa_session = self.open_session(tokens, parent_url)
        choice = self.choose_factor()
        txid = self.submit_factor(mfa_session, choice)
        outcome = self.poll_status(mfa_session, txid)
        return self.fetch_result(mfa_session, txid, outcome.result_url)

    def open_session(self, tokens: ChallengeTokens, parent_url: str) -> MfaSession:
        """Initialize the Duo frame and extract the session id."""
        self.logger.debug("opening Duo frame on %s", tokens.mfa_host)
        response = duo_auth.post_auth_frame(self.session, tokens.mfa_host,
                                            tokens.transaction_sig, parent_url)
        sid = parser.extract_sid(response.text)
        return MfaSession(sid=sid, host=tokens.mfa_host)

    def choose_factor(self) -> FactorChoice:
        """Ask the user for a factor, and a passcode if they pick one."""
        factors = list(Factor)
        index = self.prompter.choose("Select a DUO MFA Option", [factor.value for factor in factors])
        if not 0 <= index < len(factors):
            raise InvalidFactorChoice(f"factor choice {index} is out of range")
        factor = factors[index]

        if factor is Factor.PASSCODE:
            return FactorChoice(factor, self.prompter.require_string("Enter passcode"))
        return FactorChoice(factor)

    def submit_factor(self, mfa_session: MfaSession, choice: FactorChoice) -> str:
        """Start the factor and return the Duo transaction id."""
        payload = {
            'sid': mfa_session.sid,
            'device': DUO_DEVICE,
            'factor': choice.factor.value,
            'out_of_date': 'false',
        }

        if choice.factor is Factor.PASSCODE:
            payload['passcode'] = choice.passcode

        response = duo_auth.post_prompt(self.session, mfa_session.host, payload)
        response_data = duo_auth.read_json(response)

        if response_data.get('stat') != 'OK':
            message = response_data.get('message', response_data)
            raise MfaDeviceAuthFailed(f"error authenticating mfa device: {message}")

        txid = duo_auth.response_field(response_data).get('txid') or ''
        self.logger.info("Duo %s started", choice.factor.value)
        return txid

    def poll_status(self, mfa_session: MfaSession, txid: str) -> PollOutcome:
        """Poll Duo until the transaction succeeds or fails."""
        payload = {
            'sid': mfa_session.sid,
            'txid': txid
        }

        polls = 0
        while True:
            response = duo_auth.get_status(self.session, mfa_session.host, payload)
            outcome = PollOutcome.from_status(duo_auth.read_json(response))
            polls += 1

            if outcome.status:
                self.logger.info(outcome.status)

            if outcome.state is PollState.SUCCESS:
                return outcome
            if outcome.state is PollState.FAILURE:
                raise MfaDeviceAuthFailed("failed to authenticate device")

            if self.max_polls is not None and polls >= self.max_polls:
                raise MfaPollLimitExceeded(f"no Duo response after {polls} status checks")

            self.logger.debug("Duo transaction pending, waiting %ss", self.poll_interval)
            self.sleep(self.poll_interval)

    def fetch_result(self, mfa_session: MfaSession, txid: str, result_url: str) -> str:
        """Follow the result URL to get the signed cookie."""
        payload = {
            'sid': mfa_session.sid,
            'txid': txid
        }

        response = duo_auth.post_result(self.session, mfa_session.host, result_url, payload)
        cookie = duo_auth.response_field(duo_auth.read_json(response)).get('cookie')

        if not cookie:
            raise ResultCookieMissing("unable to get response.cookie from Duo result")

        return cookie
