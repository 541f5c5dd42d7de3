"""FilterController: owns the filter state and republishes results on every change."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from loguru import logger

from domisol.query_engine import available_genres, evaluate
from domisol.sheet_models import Category, FilterState, SheetRecord, SortMode

ResultHandler = Callable[[list[SheetRecord]], None]


class FilterController:
    """
    Owns the current FilterState for one browsing session.

    Every mutator updates one field, re-evaluates the full catalog through
    the query engine and hands the new result list to each subscriber before
    returning. There is no debouncing, caching or incremental filtering.

    Usage::

        controller = FilterController(catalog)
        unsubscribe = controller.subscribe(render)
        controller.set_query("bach")
        controller.toggle_category("vocal")
    """

    def __init__(self, catalog: Sequence[SheetRecord]) -> None:
        self._catalog: Sequence[SheetRecord] = catalog
        self._state = FilterState()
        self._handlers: list[ResultHandler] = []
        self._genres_source: Sequence[SheetRecord] | None = None
        self._genres: list[str] = []
        self.results: list[SheetRecord] = list(catalog)

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, handler: ResultHandler) -> Callable[[], None]:
        """
        Register ``handler`` to receive every new result list.

        Returns:
            A callable that removes the handler again.
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def _publish(self, results: list[SheetRecord]) -> None:
        self.results = results
        for handler in list(self._handlers):
            handler(results)

    def _reevaluate(self) -> None:
        self._publish(evaluate(self._catalog, self._state))

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> Sequence[SheetRecord]:
        return self._catalog

    @property
    def state(self) -> FilterState:
        """Snapshot of the current state; mutating it does not affect the controller."""
        return self._state.copy()

    @property
    def has_active_filters(self) -> bool:
        return self._state.has_active_filters

    @property
    def available_genres(self) -> list[str]:
        """Genre facet values, recomputed only when the catalog reference changes."""
        if self._genres_source is not self._catalog:
            self._genres = available_genres(self._catalog)
            self._genres_source = self._catalog
        return list(self._genres)

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def set_query(self, text: str) -> None:
        self._state.query = text
        self._reevaluate()

    def toggle_category(self, category: Category | str) -> None:
        """Add ``category`` to the selection if absent, remove it if present."""
        self._state.selected_categories ^= {Category.coerce(category)}
        self._reevaluate()

    def toggle_genre(self, genre: str) -> None:
        """Add ``genre`` to the selection if absent, remove it if present."""
        self._state.selected_genres ^= {genre}
        self._reevaluate()

    def set_sort_mode(self, mode: SortMode | str) -> None:
        """
        Replace the sort mode.

        Raises:
            ValueError: If ``mode`` is not a known sort mode.
        """
        self._state.sort_mode = SortMode.coerce(mode)
        self._reevaluate()

    def clear_all(self) -> None:
        """Reset every selection to its default and publish the full catalog."""
        self._state = FilterState()
        self._publish(list(self._catalog))

    def refresh(self) -> None:
        """Re-run the current state, as an explicit search submit does."""
        self._reevaluate()

    def replace_catalog(self, catalog: Sequence[SheetRecord]) -> None:
        """Swap in a newly loaded catalog, keeping the current selections."""
        logger.info(f"Catalog replaced: {len(self._catalog)} -> {len(catalog)} sheets")
        self._catalog = catalog
        self._reevaluate()
