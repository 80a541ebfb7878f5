"""
WhatsApp provider dispatch with ordered fallback.

Providers are tried in a fixed order (Twilio, then CallMeBot). A provider is
only attempted when its credentials are complete; the first success ends the
run. When nothing was attempted, or every attempt failed, the run ends in a
single aggregate failure.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from clawdbot_notify.notifications.credentials import CredentialResolver, ProviderSpec, TWILIO, CALLMEBOT
from clawdbot_notify.notifications.models import (
    NotificationRequest, ProviderCredentials, DeliveryResult, DeliveryFailure,
    FailureKind, DispatchState, Outcome
)
from clawdbot_notify.notifications.whatsapp_sender import TwilioWhatsAppSender, CallMeBotWhatsAppSender


logger = logging.getLogger(__name__)

EXHAUSTED_MESSAGE = "No WhatsApp provider configured or all providers failed"

SendFunction = Callable[[NotificationRequest, ProviderCredentials], Outcome]


@dataclass(frozen=True)
class ProviderAttempt:
    """One step of the fallback chain."""
    spec: ProviderSpec
    state: DispatchState
    send: SendFunction


@dataclass
class DispatchRun:
    """State and transitions of a single dispatch; never shared between requests."""
    state: DispatchState = DispatchState.NOT_ATTEMPTED
    transitions: List[Tuple[DispatchState, DispatchState]] = field(default_factory=list)
    attempted: List[str] = field(default_factory=list)
    outcome: Optional[Outcome] = None

    def advance(self, new_state: DispatchState):
        self.transitions.append((self.state, new_state))
        self.state = new_state

    def finish(self, outcome: Outcome) -> Outcome:
        if isinstance(outcome, DeliveryResult):
            self.advance(DispatchState.SUCCEEDED)
        else:
            self.advance(DispatchState.EXHAUSTED_FAILURE)
        self.outcome = outcome
        return outcome


class WhatsAppDispatcher:
    """
    Sends a WhatsApp message through the first provider that accepts it.

    Every failure kind, including a 4xx from Twilio, moves on to the next
    provider.
    """

    def __init__(
        self,
        resolver: Optional[CredentialResolver] = None,
        twilio_sender: Optional[TwilioWhatsAppSender] = None,
        callmebot_sender: Optional[CallMeBotWhatsAppSender] = None
    ):
        self.resolver = resolver or CredentialResolver()
        self.twilio_sender = twilio_sender or TwilioWhatsAppSender()
        self.callmebot_sender = callmebot_sender or CallMeBotWhatsAppSender()

        # Fixed order, Twilio first.
        self.attempts: Tuple[ProviderAttempt, ...] = (
            ProviderAttempt(TWILIO, DispatchState.TRYING_TWILIO, self.twilio_sender.send),
            ProviderAttempt(CALLMEBOT, DispatchState.TRYING_CALLMEBOT, self.callmebot_sender.send),
        )

    @property
    def provider_names(self) -> Tuple[str, ...]:
        return tuple(attempt.spec.name for attempt in self.attempts)

    def dispatch(self, request: NotificationRequest, provider: Optional[str] = None) -> Outcome:
        """
        Deliver ``request`` and return the outcome.

        Args:
            request: Message to send
            provider: Force a single provider by name, skipping the fallback chain

        Returns:
            DeliveryResult of the provider that accepted the message, or a
            DeliveryFailure (the forced provider's own failure, or the aggregate
            PROVIDERS_EXHAUSTED failure)
        """
        if provider is not None:
            return self.send_via(request, provider)
        return self.run(request).outcome

    def run(self, request: NotificationRequest) -> DispatchRun:
        """Walk the fallback chain and return the full run record."""
        run = DispatchRun()

        for attempt in self.attempts:
            credentials = self.resolver.resolve(attempt.spec, overrides=_overrides(request))
            if isinstance(credentials, DeliveryFailure):
                logger.debug(f"Skipping {attempt.spec.display_name}: {credentials.message}")
                continue

            run.advance(attempt.state)
            run.attempted.append(attempt.spec.name)
            outcome = attempt.send(request, credentials)

            if isinstance(outcome, DeliveryResult):
                logger.info(f"WhatsApp message delivered via {attempt.spec.display_name}")
                run.finish(outcome)
                return run

            logger.error(f"{attempt.spec.display_name} failed: {outcome.message}")

        if not run.attempted:
            logger.error("No WhatsApp provider configured")
        else:
            logger.error(f"All WhatsApp providers failed: {', '.join(run.attempted)}")

        run.finish(DeliveryFailure(kind=FailureKind.PROVIDERS_EXHAUSTED, message=EXHAUSTED_MESSAGE))
        return run

    def send_via(self, request: NotificationRequest, provider: str) -> Outcome:
        """
        Attempt exactly one provider, with no fallback.

        Raises:
            ValueError: If ``provider`` is not a known WhatsApp provider
        """
        attempt = self._attempt_for(provider)
        credentials = self.resolver.resolve(attempt.spec, overrides=_overrides(request))
        if isinstance(credentials, DeliveryFailure):
            logger.error(f"{attempt.spec.display_name} not configured: {credentials.message}")
            return credentials
        return attempt.send(request, credentials)

    def _attempt_for(self, provider: str) -> ProviderAttempt:
        name = provider.strip().lower()
        for attempt in self.attempts:
            if attempt.spec.name == name:
                return attempt
        raise ValueError(
            f"Unknown WhatsApp provider: {provider!r}. Choose one of: {', '.join(self.provider_names)}"
        )


def _overrides(request: NotificationRequest) -> Dict[str, Optional[str]]:
    # CallMeBot has no to_number field, so it never sees the override.
    return {'to_number': request.recipient_override}
