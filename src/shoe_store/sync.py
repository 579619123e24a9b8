"""
Sync layer between the in-memory shoe list and the document store.

ShoeSync owns one anonymous session. It mirrors the user's shoes and past
views locally and exposes the mutations the UI needs. Remote writes always
happen before the local list changes, so a failed call leaves local state as
it was.
"""
import asyncio
import enum
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .enrichment import GENERIC_ERROR, EnrichmentClient
from .errors import (
    AuthenticationError,
    EnrichmentError,
    LoadError,
    ShoeStoreError,
    ValidationError,
    WriteError,
)
from .identity import IdentityProvider
from .log import get_logger
from .models import SHOE_VIEWS, SHOES, PastView, Shoe
from .store import DocumentStore

logger = get_logger(__name__)

NO_DETAILS = "No details found."
FETCH_FAILED = "Something went wrong!"


class SessionState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    READY = "ready"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_price(value: Any) -> Optional[float]:
    """Return value as a finite float, or None if it is not one."""
    if isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price):
        return None
    return price


def parse_timestamp(value: Any) -> datetime:
    """Accept datetimes as stored in memory or ISO strings from the JSON store."""
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class ShoeSync:
    """
    Client-side state for one user's shoe list.

    Public state (read it after each call returns):
        shoes        -- current list, in load/insert order
        past_views   -- past enrichment results, newest first
        last_details -- text of the latest successful enrichment
        last_error   -- message of the latest failure, None after a success
        state        -- SessionState

    With serialize_mutations=True, add_item/delete_item/clear_all run one at
    a time; otherwise concurrent calls each apply their own result when they
    finish.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        enrichment: EnrichmentClient,
        serialize_mutations: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.identity = identity
        self.enrichment = enrichment
        self.clock = clock

        self.state = SessionState.UNAUTHENTICATED
        self.user_id: Optional[str] = None
        self.past_views: List[PastView] = []
        self.last_details: str = ""
        self.last_error: Optional[str] = None

        self._shoes: List[Shoe] = []
        # shoe name -> document id, kept in lockstep with _shoes
        self._doc_ids: Dict[str, str] = {}
        self.serialize_mutations = serialize_mutations
        # (event loop, lock); an asyncio.Lock only works inside one loop
        self._mutation_lock: Optional[Tuple[asyncio.AbstractEventLoop, asyncio.Lock]] = None

    @property
    def shoes(self) -> List[Shoe]:
        return list(self._shoes)

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY

    def _ok(self) -> None:
        self.last_error = None

    def _fail(self, error: ShoeStoreError) -> ShoeStoreError:
        self.last_error = error.message
        return error

    def _require_session(self) -> str:
        if self.state is not SessionState.READY or not self.user_id:
            raise self._fail(AuthenticationError("Not signed in."))
        return self.user_id

    def _lock_for_running_loop(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._mutation_lock is None or self._mutation_lock[0] is not loop:
            self._mutation_lock = (loop, asyncio.Lock())
        return self._mutation_lock[1]

    async def _serialized(self, operation):
        if not self.serialize_mutations:
            return await operation()
        async with self._lock_for_running_loop():
            return await operation()

    async def initialize_session(self) -> str:
        """Sign in anonymously. Returns the user id."""
        if self.state is SessionState.READY and self.user_id:
            return self.user_id

        self.state = SessionState.AUTHENTICATING
        try:
            user_id = await self.identity.sign_in_anonymously()
        except Exception as e:
            logger.exception("Anonymous sign-in failed")
            self.state = SessionState.UNAUTHENTICATED
            raise self._fail(AuthenticationError("Failed to authenticate. Please try again.")) from e

        if not user_id:
            self.state = SessionState.UNAUTHENTICATED
            raise self._fail(AuthenticationError("Failed to authenticate. Please try again."))

        self.user_id = user_id
        self.state = SessionState.READY
        self._ok()
        logger.info("Signed in anonymously as %s", user_id)
        return user_id

    async def start(self) -> None:
        """Sign in, then load shoes and past views."""
        await self.initialize_session()
        await self.load_items()
        await self.load_history()

    async def load_items(self) -> List[Shoe]:
        """Replace the local list and index with what the store holds."""
        user_id = self._require_session()
        try:
            docs = await self.store.query_by_field(SHOES, "userId", user_id)
        except Exception as e:
            logger.exception("Error loading shoes")
            raise self._fail(LoadError("Failed to load shoes.")) from e

        shoes: List[Shoe] = []
        doc_ids: Dict[str, str] = {}
        for doc in docs:
            price = parse_price(doc.data.get("price"))
            name = doc.data.get("shoeName")
            if price is None or not isinstance(name, str):
                logger.warning("Invalid shoe record %s skipped: %r", doc.id, doc.data)
                continue
            if name in doc_ids:
                logger.warning("Duplicate shoe %r in record %s skipped", name, doc.id)
                continue
            shoes.append(Shoe(name=name, price=price))
            doc_ids[name] = doc.id

        self._shoes = shoes
        self._doc_ids = doc_ids
        self._ok()
        return self.shoes

    async def load_history(self) -> List[PastView]:
        """Reload past views, newest first."""
        user_id = self._require_session()
        try:
            docs = await self.store.query_by_field(SHOE_VIEWS, "userId", user_id)
            views = [
                PastView(
                    id=doc.id,
                    shoe_name=doc.data.get("shoeName", ""),
                    details=doc.data.get("details", ""),
                    timestamp=parse_timestamp(doc.data.get("timestamp")),
                )
                for doc in docs
            ]
        except Exception as e:
            logger.exception("Error loading past views")
            raise self._fail(LoadError("Failed to load past views.")) from e

        # sorted() is stable, ties keep query order
        self.past_views = sorted(views, key=lambda v: v.timestamp, reverse=True)
        self._ok()
        return list(self.past_views)

    async def add_item(self, name: str, price: Any) -> Shoe:
        """Validate and persist a new shoe, then append it locally."""
        user_id = self._require_session()
        trimmed = (name or "").strip()
        parsed_price = parse_price(price)
        if not trimmed or parsed_price is None or parsed_price <= 0:
            raise self._fail(ValidationError("Please enter a valid shoe name and price."))
        if any(shoe.name == trimmed for shoe in self._shoes):
            raise self._fail(ValidationError("This shoe is already in your list."))

        async def write() -> Shoe:
            # Re-check after waiting for the lock
            if trimmed in self._doc_ids:
                raise self._fail(ValidationError("This shoe is already in your list."))
            try:
                doc_id = await self.store.insert(SHOES, {
                    "userId": user_id,
                    "shoeName": trimmed,
                    "price": parsed_price,
                    "timestamp": self.clock(),
                })
            except Exception as e:
                logger.exception("Error adding shoe %r", trimmed)
                raise self._fail(WriteError("Failed to add shoe.")) from e

            shoe = Shoe(name=trimmed, price=parsed_price)
            if trimmed in self._doc_ids:
                # An overlapping add of the same name landed first, replace it
                self._shoes = [shoe if s.name == trimmed else s for s in self._shoes]
            else:
                self._shoes = self._shoes + [shoe]
            self._doc_ids[trimmed] = doc_id
            self._ok()
            return shoe

        return await self._serialized(write)

    async def delete_item(self, name: str) -> bool:
        """Delete a shoe by name. Returns False if there was nothing to delete."""
        self._require_session()

        async def delete() -> bool:
            doc_id = self._doc_ids.get(name)
            if doc_id is None:
                return False
            try:
                await self.store.delete_by_id(SHOES, doc_id)
            except Exception as e:
                logger.exception("Error deleting shoe %r", name)
                raise self._fail(WriteError("Failed to delete shoe.")) from e

            self._shoes = [shoe for shoe in self._shoes if shoe.name != name]
            del self._doc_ids[name]
            self._ok()
            return True

        return await self._serialized(delete)

    async def clear_all(self) -> int:
        """
        Delete every shoe of the session. Returns the number of records removed.

        All deletes run concurrently. If any of them fails the local list is
        left untouched and WriteError is raised; call load_items to see what
        is actually left in the store.
        """
        user_id = self._require_session()

        async def clear() -> int:
            try:
                docs = await self.store.query_by_field(SHOES, "userId", user_id)
            except Exception as e:
                logger.exception("Error listing shoes to clear")
                raise self._fail(WriteError("Failed to clear shoes.")) from e

            results = await asyncio.gather(
                *(self.store.delete_by_ref(doc.ref) for doc in docs),
                return_exceptions=True,
            )
            failures = [r for r in results if isinstance(r, BaseException)]
            if failures:
                for failure in failures:
                    logger.error("Error clearing shoe: %s", failure)
                raise self._fail(WriteError(
                    f"Some shoes could not be removed ({len(failures)} of {len(docs)} failed)."
                )) from failures[0]

            self._shoes = []
            self._doc_ids = {}
            self._ok()
            return len(docs)

        return await self._serialized(clear)

    async def request_enrichment(self, shoes: Optional[Sequence[Shoe]] = None) -> str:
        """
        Fetch details for the given shoes (default: the current list).

        A successful, non-empty result is logged as a past view. That write
        and the history reload that follows are best effort: the details are
        returned even if they fail.
        """
        shoes = list(self._shoes if shoes is None else shoes)
        if not shoes:
            raise self._fail(ValidationError("Add at least one shoe."))

        self.last_details = ""
        try:
            details = await self.enrichment.fetch_details(shoes, self.user_id)
        except EnrichmentError as e:
            self.last_details = FETCH_FAILED
            raise self._fail(e) from e
        except Exception as e:
            logger.exception("Error fetching shoe details")
            self.last_details = FETCH_FAILED
            raise self._fail(EnrichmentError(GENERIC_ERROR)) from e

        self.last_details = details or NO_DETAILS
        self._ok()

        if details and self.user_id:
            await self._record_view(shoes, details)
        return self.last_details

    async def _record_view(self, shoes: Sequence[Shoe], details: str) -> None:
        try:
            await self.store.insert(SHOE_VIEWS, {
                "userId": self.user_id,
                "shoeName": ", ".join(shoe.name for shoe in shoes),
                "details": details,
                "timestamp": self.clock(),
            })
        except Exception:
            logger.exception("Error saving past view")
            return

        try:
            await self.load_history()
        except LoadError:
            # load_history already logged it; the banner keeps the message
            pass
