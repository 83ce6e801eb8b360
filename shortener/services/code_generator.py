"""
Short Code Generation and Allocation

Random short codes are drawn uniformly from [A-Za-z0-9]; with the default
length of 6 that is 62^6 (about 5.7e10) codes.

Allocation protocol:
1. Custom alias: check the alias policy, check the registry, insert.
   Any collision (seen by the check or by the insert) is AliasTakenError.
2. Random code: generate, check, insert. A collision seen by either the
   check or the insert costs one attempt and a new candidate is tried.
   After max_attempts the allocation fails with ExhaustedRetriesError.

The existence check only avoids pointless inserts. The storage UNIQUE
constraint is what guarantees two concurrent allocations never end up
with the same value.
"""

import logging
import secrets
import string
from typing import Callable, Optional

from shortener.core.exceptions import (
    AliasTakenError,
    ExhaustedRetriesError,
    UniqueConstraintViolation,
)
from shortener.core.validators import validate_custom_alias
from shortener.db.models import ShortURL
from shortener.services.url_registry import URLRegistry

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits
DEFAULT_CODE_LENGTH = 6
DEFAULT_MAX_ATTEMPTS = 10


def generate_short_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """
    Generate a random short code.

    Example:
        generate_short_code() -> "aZ3k9Q"
    """
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


RecordFactory = Callable[[str], ShortURL]


class ShortCodeAllocator:
    """
    Claims a unique short code (random or caller-chosen) and inserts the
    record that uses it.
    """

    def __init__(
        self,
        registry: URLRegistry,
        code_length: int = DEFAULT_CODE_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        code_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            registry: Storage that enforces code/alias uniqueness
            code_length: Length of random codes
            max_attempts: Random candidates tried before giving up
            code_factory: Candidate source, defaults to generate_short_code
        """
        self.registry = registry
        self.code_length = code_length
        self.max_attempts = max(1, max_attempts)
        self._code_factory = code_factory or (lambda: generate_short_code(self.code_length))

    async def allocate(
        self,
        build_record: RecordFactory,
        custom_alias: Optional[str] = None,
    ) -> ShortURL:
        """
        Allocate a short code and insert the record built for it.

        Args:
            build_record: Called with the claimed code, returns the unsaved record
            custom_alias: Caller-chosen code, if any

        Returns:
            The inserted record; its short_code is the allocated code

        Raises:
            InvalidAliasError: Alias fails the alias policy
            AliasTakenError: Alias already used as a code or alias
            ExhaustedRetriesError: No free random code within max_attempts
        """
        if custom_alias:
            return await self._allocate_alias(build_record, custom_alias)
        return await self._allocate_random(build_record)

    async def _allocate_alias(self, build_record: RecordFactory, alias: str) -> ShortURL:
        validate_custom_alias(alias)

        if await self.registry.exists(alias):
            raise AliasTakenError(alias)

        try:
            return await self.registry.insert(build_record(alias))
        except UniqueConstraintViolation:
            raise AliasTakenError(alias)

    async def _allocate_random(self, build_record: RecordFactory) -> ShortURL:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self._code_factory()

            if await self.registry.exists(candidate):
                logger.debug(f"Short code collision on check (attempt {attempt}): {candidate}")
                continue

            try:
                return await self.registry.insert(build_record(candidate))
            except UniqueConstraintViolation:
                logger.info(f"Short code collision on insert (attempt {attempt}): {candidate}")
                continue

        logger.error(f"Short code allocation exhausted after {self.max_attempts} attempts")
        raise ExhaustedRetriesError(self.max_attempts)
