"""
Post filtering and search.

The matching rule lives in plain functions so it can run without any markup;
``PostFilter`` owns the mutable ``FilterState`` and pushes each
``FilterResult`` to whatever view it was given.
"""

import logging
import threading
from typing import List, Optional, Sequence

from .debounce import Debouncer

ALL_CATEGORIES = 'all'
DEFAULT_DEBOUNCE_WAIT = 0.3


class PostCard:
    """One rendered post preview, as the filter sees it."""

    def __init__(self, category, title='', content_snippet='', text=''):
        self.category = category
        self.title = title or ''
        self.content_snippet = content_snippet or ''
        self.text = text or ''

    def __repr__(self):
        return f"PostCard(category={self.category!r}, title={self.title!r})"

    def __eq__(self, other):
        if not isinstance(other, PostCard):
            return NotImplemented
        return (self.category, self.title, self.content_snippet, self.text) == \
            (other.category, other.title, other.content_snippet, other.text)

    def __hash__(self):
        return hash((self.category, self.title, self.content_snippet, self.text))


def normalize_query(query: Optional[str]) -> str:
    """Lower-case and trim a raw search box value."""
    if not query:
        return ''
    return query.lower().strip()


class FilterState:
    """The (active category, search query) pair behind a page of cards."""

    def __init__(self, active_category: str = ALL_CATEGORIES, search_query: str = ''):
        self.active_category = active_category or ALL_CATEGORIES
        self._search_query = normalize_query(search_query)

    @property
    def search_query(self) -> str:
        return self._search_query

    @search_query.setter
    def search_query(self, value: str) -> None:
        self._search_query = normalize_query(value)

    def copy(self) -> 'FilterState':
        return FilterState(self.active_category, self._search_query)

    def __repr__(self):
        return f"FilterState(active_category={self.active_category!r}, search_query={self._search_query!r})"

    def __eq__(self, other):
        if not isinstance(other, FilterState):
            return NotImplemented
        return (self.active_category, self.search_query) == (other.active_category, other.search_query)


class FilterResult:
    """Visibility of every card after one recompute, in source order."""

    def __init__(self, cards: Sequence[PostCard], flags: Sequence[bool]):
        self.flags = list(flags)
        self.visible_cards = [card for card, shown in zip(cards, self.flags) if shown]

    @property
    def visible_count(self) -> int:
        return len(self.visible_cards)

    @property
    def show_empty_state(self) -> bool:
        return self.visible_count == 0

    @property
    def show_grid(self) -> bool:
        return self.visible_count > 0

    @property
    def visible_titles(self) -> List[str]:
        return [card.title for card in self.visible_cards]

    def __eq__(self, other):
        if not isinstance(other, FilterResult):
            return NotImplemented
        return self.flags == other.flags and self.visible_cards == other.visible_cards

    def __repr__(self):
        return f"FilterResult(visible={self.visible_count}/{len(self.flags)})"


def category_matches(card: PostCard, active_category: str) -> bool:
    """Exact, case-sensitive category check with the reserved "all"."""
    return active_category == ALL_CATEGORIES or card.category == active_category


def search_matches(card: PostCard, query: str) -> bool:
    """
    Substring search over title, snippet and the card's whole text.

    ``query`` is expected to be normalized already. The full-text check is a
    superset of the first two and catches text the data attributes leave out
    (dates, read time, category labels).
    """
    if query == '':
        return True
    return (
        query in card.title.lower()
        or query in card.content_snippet.lower()
        or query in card.text.lower()
    )


def is_visible(card: PostCard, state: FilterState) -> bool:
    return category_matches(card, state.active_category) and search_matches(card, state.search_query)


def recompute(state: FilterState, cards: Sequence[PostCard]) -> FilterResult:
    """Compute which cards are shown for ``state``; never reorders."""
    return FilterResult(cards, [is_visible(card, state) for card in cards])


class PostFilter:
    """
    Drives filtering for one page of cards.

    ``view`` is anything with ``apply_filter(result)`` and, optionally,
    ``set_active_category(category)``; a ``StaticPage`` fits. Category
    changes recompute at once, search keystrokes go through a trailing
    debounce.
    """

    def __init__(self, cards, view=None, state=None, debounce_wait=DEFAULT_DEBOUNCE_WAIT, timer_factory=None):
        self.cards = list(cards)
        self.view = view
        self.state = state or FilterState()
        self.logger = logging.getLogger('PostFilter')
        self.last_result = None
        self.recompute_count = 0

        self._lock = threading.RLock()
        # Bumped by every keystroke and by clear_search; a debounced run carrying
        # an older value is dropped.
        self._search_generation = 0
        self._debounced_search = Debouncer(self._apply_search, debounce_wait, timer_factory=timer_factory)

    @classmethod
    def for_page(cls, page, **kwargs):
        """Build a filter over the cards of a ``StaticPage``, bound to it."""
        return cls(page.cards(), view=page, **kwargs)

    def refresh(self) -> FilterResult:
        """Recompute with the current state and push it to the view."""
        with self._lock:
            result = recompute(self.state, self.cards)
            self.recompute_count += 1
            self.last_result = result
            self.logger.debug(
                f"Recomputed {self.state!r}: {result.visible_count} of {len(self.cards)} cards visible"
            )
            if self.view is not None:
                self.view.apply_filter(result)
            return result

    def select_category(self, category: str) -> FilterResult:
        """Category button click."""
        with self._lock:
            self.state.active_category = category or ALL_CATEGORIES
            set_active = getattr(self.view, 'set_active_category', None)
            if set_active is not None:
                set_active(self.state.active_category)
            return self.refresh()

    def search_input(self, value: str) -> None:
        """Search box keystroke; recomputation is deferred."""
        with self._lock:
            self._search_generation += 1
            self._debounced_search(value, self._search_generation)

    def clear_search(self) -> FilterResult:
        """Escape in the search box: drop pending input and show everything again."""
        with self._lock:
            self._debounced_search.cancel()
            self._search_generation += 1
            self.state.search_query = ''
            return self.refresh()

    def flush(self) -> bool:
        """Run a pending search recompute immediately."""
        return self._debounced_search.flush()

    @property
    def search_pending(self) -> bool:
        return self._debounced_search.pending

    def _apply_search(self, value, generation):
        with self._lock:
            if generation != self._search_generation:
                self.logger.debug(f"Dropping stale search {value!r}")
                return
            self.state.search_query = value
            self.refresh()
