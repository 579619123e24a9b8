"""Anonymous sign-in."""
import uuid


class IdentityProvider:
    """Issues the opaque user id that scopes every record of a session."""

    async def sign_in_anonymously(self) -> str:
        raise NotImplementedError


class AnonymousIdentityProvider(IdentityProvider):
    """Hands out a fresh random id per sign-in. Nothing is remembered."""

    async def sign_in_anonymously(self) -> str:
        return uuid.uuid4().hex
