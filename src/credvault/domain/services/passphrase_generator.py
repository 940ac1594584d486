"""Random passphrase generation.

Passphrases are drawn from letters and digits with visually similar
characters removed, and are checked against the mandatory password rules
only: at 20 characters and more they count as passphrases, which the
character-class rule does not apply to.
"""

import re
import secrets
import string

from credvault.core.config import PasswordSettings
from credvault.core.exceptions import GenerationFailure
from credvault.core.logging import get_logger
from credvault.domain.services.password_policy import PasswordPolicy

logger = get_logger(__name__)

SIMILAR_CHARACTERS = "0Oo1lIiL"
ALPHABET = "".join(
    c for c in string.ascii_letters + string.digits if c not in SIMILAR_CHARACTERS
)

_REPEATING = re.compile(r"(.)\1{2,}")


class PassphraseGenerator:
    """Generates random passphrases that pass the mandatory strength rules."""

    def __init__(
        self,
        policy: PasswordPolicy,
        min_length: int = 20,
        max_length: int = 40,
        max_attempts: int = 100,
    ) -> None:
        """Initialize the generator.

        Args:
            policy: Policy the final passphrase is checked against.
            min_length: Shortest passphrase returned.
            max_length: Upper bound (exclusive) of the candidate length.
            max_attempts: Candidates drawn before giving up.
        """
        self.policy = policy
        self.min_length = min_length
        self.max_length = max_length
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(cls, settings: PasswordSettings, policy: PasswordPolicy) -> "PassphraseGenerator":
        return cls(
            policy,
            min_length=settings.passphrase_min_length,
            max_length=settings.passphrase_max_length,
            max_attempts=settings.passphrase_max_attempts,
        )

    def _candidate(self) -> str:
        length = self.min_length + secrets.randbelow(self.max_length - self.min_length)
        return "".join(secrets.choice(ALPHABET) for _ in range(length))

    def generate(self) -> str:
        """Generate a random passphrase.

        Returns:
            A passphrase of at least ``min_length`` characters with no
            character repeated three or more times in a row.

        Raises:
            GenerationFailure: If the random source fails, no usable
                candidate was drawn within ``max_attempts``, or the result
                does not pass the mandatory rules.
        """
        passphrase = ""
        attempts = 0
        # Stripping a run can join two others, hence the re-check
        while len(passphrase) < self.min_length or _REPEATING.search(passphrase):
            if attempts >= self.max_attempts:
                raise GenerationFailure(
                    f"No usable passphrase after {self.max_attempts} attempts"
                )
            attempts += 1
            try:
                candidate = self._candidate()
            except OSError as e:
                raise GenerationFailure(f"Random source unavailable: {e}") from e
            passphrase = _REPEATING.sub("", candidate)

        result = self.policy.evaluate(passphrase, mandatory_only=True)
        if not result.ok:
            logger.error(
                "Generated passphrase failed the strength policy",
                codes=[v.code for v in result.violations],
            )
            raise GenerationFailure(
                "An unexpected problem occurred while generating the random passphrase"
            )

        logger.debug("Passphrase generated", attempts=attempts, length=len(passphrase))
        return passphrase
