"""
Console mail adapter for local development.

Nothing is delivered: the verification secret is written to the log so a
developer can copy it from the server output.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    EmailSender that logs instead of sending.

    Stateless, so one instance can be shared by every request. Satisfies the
    port structurally; it does not inherit from the Protocol.
    """

    def send_verification_secret(self, email: str, secret: str) -> None:
        """
        Log the secret at INFO under the ``[VERIFICATION]`` tag.

        Args:
            email: Normalized recipient address
            secret: 8-digit one-time secret
        """
        logger.info("[VERIFICATION] Email: %s Secret: %s", email, secret)
