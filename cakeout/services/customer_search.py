"""Search-as-you-type controller for the customer autocomplete.

Keystrokes restart a debounce window; when it elapses with a long enough
query a search is issued against the backend. Every issued search gets a
sequence number and only the newest one may touch the suggestions, so a slow
response for an older query can never overwrite a newer result, whatever the
network latency.

States:
    IDLE -> DEBOUNCING -> SEARCHING -> SHOWING_SUGGESTIONS
    any state -> CLOSED (selection, escape, outside click, short query)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from cakeout.config import settings
from cakeout.errors import APIError
from cakeout.schemas import Customer
from cakeout.services.customer_resolution import CustomerBinding

logger = logging.getLogger(__name__)

SearchFunction = Callable[[str], Awaitable[list[Customer]]]


class SearchState(str, Enum):
    """Autocomplete states."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    SHOWING_SUGGESTIONS = "showing_suggestions"
    CLOSED = "closed"


class CustomerSearchController:
    """Debounced, race-safe customer search bound to a customer field.

    Must be driven from a running event loop.
    """

    def __init__(
        self,
        search: SearchFunction,
        binding: CustomerBinding | None = None,
        *,
        debounce_seconds: float | None = None,
        min_chars: int | None = None,
        on_select: Callable[[Customer], None] | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            search: Coroutine function returning customers matching a query.
            binding: Customer field to keep in sync. A new one by default.
            debounce_seconds: Quiet period before searching. Defaults to settings.
            min_chars: Minimum trimmed query length. Defaults to settings.
            on_select: Called with the customer after a selection.
        """
        self._search = search
        self.binding = binding or CustomerBinding()
        if debounce_seconds is None:
            debounce_seconds = settings.customer_search_debounce_ms / 1000
        self.debounce_seconds = debounce_seconds
        self.min_chars = min_chars if min_chars is not None else settings.customer_search_min_chars
        self.on_select = on_select

        self.state = SearchState.IDLE
        self.suggestions: list[Customer] = []
        self.error: str | None = None
        self.is_loading = False

        self._sequence = 0
        self._debounce_task: asyncio.Task[None] | None = None
        self._search_tasks: set[asyncio.Task[None]] = set()

    @property
    def query(self) -> str:
        return self.binding.text

    @property
    def is_open(self) -> bool:
        return self.state == SearchState.SHOWING_SUGGESTIONS

    @property
    def visible_suggestions(self) -> list[Customer]:
        """Suggestions to render; hidden ones are kept but not shown."""
        return list(self.suggestions) if self.is_open else []

    def _query_long_enough(self, text: str) -> bool:
        return len(text.strip()) >= self.min_chars

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    def _supersede(self) -> int:
        """Invalidate every search issued so far."""
        self._sequence += 1
        self.is_loading = False
        return self._sequence

    # --- Events ---

    def on_input(self, text: str) -> None:
        """Handle a change of the customer field.

        The selection is reconciled with the new text before anything else,
        then the debounce window restarts.
        """
        self.binding.type_text(text)
        self._cancel_debounce()

        if not text:
            self._supersede()
            self.suggestions = []
            self.state = SearchState.CLOSED
            return

        if self.binding.is_bound:
            # Text still equals the selected customer's name
            return

        self.state = SearchState.DEBOUNCING
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounce(text))

    def on_focus(self) -> None:
        """Reopen hidden suggestions without searching again."""
        if (
            self.state in (SearchState.CLOSED, SearchState.IDLE)
            and self._query_long_enough(self.query)
            and self.suggestions
        ):
            self.state = SearchState.SHOWING_SUGGESTIONS

    def on_enter(self) -> Customer | None:
        """Select the first suggestion if the list is open.

        Returns:
            The selected customer, or None if nothing was selected.
        """
        if self.is_open and self.suggestions:
            customer = self.suggestions[0]
            self.select(customer)
            return customer
        return None

    def on_escape(self) -> None:
        """Hide the suggestions; they are kept for a later focus."""
        self.state = SearchState.CLOSED

    def on_outside_click(self) -> None:
        self.state = SearchState.CLOSED

    def select(self, customer: Customer) -> None:
        """Bind a customer and close the list.

        Any search still in flight is invalidated so it cannot reopen it.
        """
        self._cancel_debounce()
        self._supersede()
        self.binding.select(customer)
        self.suggestions = []
        self.error = None
        self.state = SearchState.CLOSED
        logger.debug("Selected customer %s (%s)", customer.id, customer.name)
        if self.on_select is not None:
            self.on_select(customer)

    # --- Async work ---

    async def _debounce(self, text: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._debounce_task = None

        if not self._query_long_enough(text):
            self._supersede()
            self.suggestions = []
            self.state = SearchState.CLOSED
            return

        token = self._supersede()
        self.state = SearchState.SEARCHING
        self.is_loading = True
        self.error = None

        task = asyncio.get_running_loop().create_task(self._run_search(text.strip(), token))
        self._search_tasks.add(task)
        task.add_done_callback(self._search_tasks.discard)

    async def _run_search(self, query: str, token: int) -> None:
        try:
            results = await self._search(query)
        except APIError as e:
            if token != self._sequence:
                logger.debug("Ignoring failure of superseded search %r: %s", query, e)
                return
            logger.warning("Customer search for %r failed: %s", query, e)
            self.is_loading = False
            self.error = str(e) or "Failed to search customers"
            self.suggestions = []
            if self._debounce_task is None:
                self.state = SearchState.CLOSED
            return

        if token != self._sequence:
            logger.debug("Discarding stale results for %r", query)
            return

        self.is_loading = False
        self.suggestions = list(results)
        if self._debounce_task is None:
            self.state = SearchState.SHOWING_SUGGESTIONS

    async def wait_pending(self) -> None:
        """Wait until no debounce window or search is outstanding."""
        while self._debounce_task is not None or self._search_tasks:
            if self._debounce_task is not None:
                await asyncio.gather(self._debounce_task, return_exceptions=True)
                if self._debounce_task is not None and self._debounce_task.done():
                    self._debounce_task = None
            if self._search_tasks:
                await asyncio.gather(*self._search_tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel pending work and wait for it to unwind."""
        tasks = list(self._search_tasks)
        if self._debounce_task is not None:
            tasks.append(self._debounce_task)
        self._cancel_debounce()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._supersede()
