"""Collision-free document identities.

An identity is 16 characters drawn from [A-Za-z0-9] using the secrets
module. The generator keeps the set of identities already in use (vault
frontmatter plus everything issued in this session) and draws again on a
collision.
"""

import logging
import secrets
import string
from typing import Iterable

from .frontmatter_handler import IDENTITY_KEY, FrontmatterHandler
from .models import LocalNote

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits
IDENTITY_LENGTH = 16


def random_identity(length: int = IDENTITY_LENGTH) -> str:
    return "".join(ALPHABET[byte % len(ALPHABET)] for byte in secrets.token_bytes(length))


class IdentityGenerator:
    """Issues identities that are unique among the known ones.

    Example:
        >>> generator = IdentityGenerator(known=["aaaaaaaaaaaaaaaa"])
        >>> identity = generator.generate()
        >>> identity in generator
        True
    """

    def __init__(self, known: Iterable[str] = ()):
        self._known = {identity for identity in known if identity}

    def __contains__(self, identity: str) -> bool:
        return identity in self._known

    def register(self, identity: str) -> None:
        if identity:
            self._known.add(identity)

    def generate(self) -> str:
        identity = random_identity()
        while identity in self._known:
            logger.debug(f"Identity collision on {identity}, drawing again")
            identity = random_identity()
        self._known.add(identity)
        return identity

    def ensure_note_identity(self, note: LocalNote, persist: bool = False) -> str:
        """Return the note's identity, issuing one if it has none.

        Args:
            note: Note to identify; its frontmatter dict is updated in place
            persist: Also write the new identity into the note file

        Returns:
            The existing or newly issued identity
        """
        if note.identity:
            self.register(note.identity)
            return note.identity

        identity = self.generate()
        note.frontmatter[IDENTITY_KEY] = identity
        if persist:
            FrontmatterHandler.write_fields(note.absolute_path, {IDENTITY_KEY: identity})
        logger.info(f"Issued identity {identity} for {note.path}")
        return identity
