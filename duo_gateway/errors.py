"""Exceptions raised while talking to the Duo Access Gateway."""


class DuoGatewayError(Exception):
    """Base class for every handshake failure."""


class TransportError(DuoGatewayError):
    """An HTTP request failed or returned an unusable response."""


class InitialFetchFailed(TransportError):
    """The gateway SSO page could not be retrieved."""


class MissingSubmitURL(DuoGatewayError):
    pass


class ChallengeTokensNotFound(DuoGatewayError):
    pass


class MalformedSignature(DuoGatewayError):
    pass


class SessionIDNotFound(DuoGatewayError):
    pass


class ResultCookieMissing(DuoGatewayError):
    pass


class AssertionNotFound(DuoGatewayError):
    pass


class MfaDeviceAuthFailed(DuoGatewayError):
    """Duo rejected the factor or the user denied the request."""


class MfaPollLimitExceeded(MfaDeviceAuthFailed):
    """The status poll ran out of attempts before reaching a terminal state."""


class ConfigError(DuoGatewayError):
    pass


class InvalidFactorChoice(DuoGatewayError):
    """The prompter picked a factor index that does not exist."""
