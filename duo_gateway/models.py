from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class LoginDetails:
    url: str
    username: str
    password: str = field(repr=False)


class MfaPreference(Enum):
    AUTO = "Auto"
    NONE = "None"

    @classmethod
    def parse(cls, value: Optional[str]) -> "MfaPreference":
        """Anything other than "auto" (any case) disables the Duo stage."""
        if value and value.strip().lower() == "auto":
            return cls.AUTO
        return cls.NONE


@dataclass
class FormSubmission:
    target_url: str
    fields: Dict[str, str] = field(default_factory=dict)
    declared_actions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChallengeTokens:
    mfa_host: str
    post_action: str
    transaction_sig: str
    app_sig: str


@dataclass(frozen=True)
class MfaSession:
    sid: str
    host: str


class Factor(Enum):
    PUSH = "Duo Push"
    CALL = "Phone Call"
    PASSCODE = "Passcode"


@dataclass(frozen=True)
class FactorChoice:
    factor: Factor
    passcode: Optional[str] = field(default=None, repr=False)


class PollState(Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass(frozen=True)
class PollOutcome:
    state: PollState
    result_url: str = ""
    status: str = ""

    @classmethod
    def from_status(cls, body: Dict[str, Any]) -> "PollOutcome":
        """Build an outcome from a /frame/status JSON body."""
        response = body.get("response")
        if not isinstance(response, dict):
            response = {}
        result = response.get("result") or ""
        if result == "SUCCESS":
            state = PollState.SUCCESS
        elif result == "FAILURE":
            state = PollState.FAILURE
        else:
            state = PollState.PENDING

        return cls(state=state,
                   result_url=response.get("result_url") or "",
                   status=response.get("status") or "")
