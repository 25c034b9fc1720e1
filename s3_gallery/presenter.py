from __future__ import annotations
"""View-agnostic presenter that drives the gallery projection."""
from dataclasses import replace
import logging
import threading
from typing import Callable

from .controller import GalleryController, NotConnectedError
from .models import FileObject, ListingPage
from .profiles import ConnectionProfile
from .projection import ViewProjection
from .services import DeleteError, GalleryError, ListingFetchError
from .settings import AppSettings, SettingsStorage
from .ui_utils import PackageInfo, load_package_info


DispatchFn = Callable[[Callable[[], None]], None]
SpawnFn = Callable[[Callable[[], None]], None]
ItemsFn = Callable[[tuple[FileObject, ...]], None]
ErrorFn = Callable[[str], None]
DoneFn = Callable[[], None]

LOGGER = logging.getLogger(__name__)


def _format_error(exc: Exception) -> str:
    return str(exc)


def _spawn_thread(task: Callable[[], None]) -> None:
    threading.Thread(target=task, daemon=True).start()


class GalleryPresenter:
    """Runs listing and delete calls in the background and applies results.

    Results are applied to the projection inside ``dispatch`` so that every
    mutation happens on the caller's thread. Initial loads and load-more
    requests have separate busy flags; a second request of the same kind is
    refused while one is outstanding.
    """

    def __init__(
        self,
        *,
        controller: GalleryController | None = None,
        settings_storage: SettingsStorage | None = None,
        dispatch: DispatchFn | None = None,
        spawn: SpawnFn | None = None,
    ) -> None:
        self._controller = controller or GalleryController()
        self._settings_storage = settings_storage or SettingsStorage()
        self._settings = self._settings_storage.load()
        self._dispatch = dispatch or (lambda func: func())
        self._spawn = spawn or _spawn_thread
        self._package_info = load_package_info()
        self._projection = ViewProjection(
            self._controller.list_page,
            deduplicate_keys=self._settings.deduplicate_keys,
        )
        self._generation = 0
        self._loading = False
        self._loading_more = False

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    @property
    def package_info(self) -> PackageInfo:
        return self._package_info

    @property
    def is_connected(self) -> bool:
        return self._controller.is_connected

    @property
    def selected_profile(self) -> str | None:
        return self._controller.selected_profile

    @property
    def bucket_name(self) -> str | None:
        return self._controller.bucket_name

    @property
    def items(self) -> tuple[FileObject, ...]:
        return self._projection.items

    @property
    def has_more(self) -> bool:
        return self._projection.can_load_more

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_loading_more(self) -> bool:
        return self._loading_more

    def save_settings(self, settings: AppSettings) -> None:
        settings = replace(settings, page_size=max(int(settings.page_size), 1))
        self._settings = settings
        self._projection.deduplicate_keys = settings.deduplicate_keys
        self._settings_storage.save(settings)

    def update_page_size(self, value: int) -> None:
        self.save_settings(replace(self._settings, page_size=value))

    def update_last_connection(self, connection: str) -> None:
        if not self._settings.remember_last_connection:
            return
        self._settings = replace(self._settings, last_connection=connection or "")
        self._settings_storage.save(self._settings)

    def maybe_auto_connect_profile(self) -> str | None:
        if not self._settings.remember_last_connection:
            return None
        name = self._settings.last_connection
        if not name or name not in {profile.name for profile in self.list_profiles()}:
            return None
        return name

    def list_profiles(self) -> list[ConnectionProfile]:
        return self._controller.list_profiles()

    def save_profile(self, profile: ConnectionProfile, *, original_name: str | None = None) -> None:
        self._controller.save_profile(profile, original_name=original_name)

    def delete_profile(self, name: str) -> None:
        self._controller.delete_profile(name)

    def get_profile(self, name: str) -> ConnectionProfile:
        return self._controller.get_profile(name)

    def connect(self, profile_name: str) -> None:
        """Switch to ``profile_name`` and discard the current projection.

        Raises:
            ValueError: when the profile is unknown or incomplete.
        """
        LOGGER.debug("Connecting using profile '%s'", profile_name)
        self._controller.connect_with_profile(profile_name)
        self._invalidate()
        self.update_last_connection(profile_name)

    def disconnect(self) -> None:
        self._controller.disconnect()
        self._invalidate()

    def refresh(
        self,
        *,
        on_success: ItemsFn,
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> bool:
        """Reload the first page, replacing the projection on success."""
        if self._loading:
            LOGGER.debug("Refresh ignored; a refresh is already running")
            return False
        self._loading = True
        self._loading_more = False
        self._generation += 1
        generation = self._generation
        page_size = self._settings.page_size
        LOGGER.debug("Refreshing gallery (page_size=%d)", page_size)

        def apply(page: ListingPage) -> None:
            if generation != self._generation:
                LOGGER.debug("Discarding stale refresh result")
                return
            self._projection.apply_initial(page)
            on_success(self._projection.items)

        def report(message: str) -> None:
            if generation != self._generation:
                LOGGER.debug("Dropping stale refresh error: %s", message)
                return
            on_error(message)

        def finish() -> None:
            if generation == self._generation:
                self._loading = False
            if on_done:
                on_done()

        self._spawn(self._fetch_task(None, page_size, apply, report, finish, "Refresh"))
        return True

    def load_more(
        self,
        *,
        on_success: ItemsFn,
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> bool:
        """Append the next page; returns ``False`` when nothing was started."""
        if self._loading_more or self._loading:
            LOGGER.debug("Load more ignored; a listing request is already running")
            return False
        if not self._projection.can_load_more:
            return False
        self._loading_more = True
        generation = self._generation
        cursor = self._projection.cursor
        page_size = self._settings.page_size
        LOGGER.debug("Loading more (cursor=%r, page_size=%d)", cursor, page_size)

        def apply(page: ListingPage) -> None:
            if generation != self._generation or cursor != self._projection.cursor:
                LOGGER.debug("Discarding stale load-more result")
                return
            self._projection.apply_more(page)
            on_success(self._projection.items)

        def report(message: str) -> None:
            if generation != self._generation:
                LOGGER.debug("Dropping stale load-more error: %s", message)
                return
            on_error(message)

        def finish() -> None:
            if generation == self._generation:
                self._loading_more = False
            if on_done:
                on_done()

        self._spawn(self._fetch_task(cursor, page_size, apply, report, finish, "Load more"))
        return True

    def delete(
        self,
        key: str,
        *,
        on_success: DoneFn,
        on_error: ErrorFn,
        on_restored: ItemsFn | None = None,
    ) -> bool:
        """Optimistically drop ``key`` from the projection and delete it remotely.

        When the backend delete fails, the removed entries are put back where
        they were and ``on_restored`` receives the restored items.
        """
        removed = self._projection.take(key)
        LOGGER.debug("Deleting '%s' (%s locally)", key, "removed" if removed else "not held")

        def restore(message: str) -> None:
            if removed is not None and self._projection.restore(removed) and on_restored:
                on_restored(self._projection.items)
            on_error(message)

        def task() -> None:
            try:
                self._controller.delete_object(key)
            except (DeleteError, NotConnectedError) as exc:
                LOGGER.warning("Delete failed for '%s': %s", key, exc)
                self._dispatch(lambda: restore(_format_error(exc)))
            except Exception as exc:
                LOGGER.exception("Unexpected delete error for '%s'", key)
                self._dispatch(lambda: restore(_format_error(exc)))
            else:
                LOGGER.debug("Deleted '%s'", key)
                self._dispatch(on_success)

        self._spawn(task)
        return removed is not None

    def resolve_url(
        self,
        key: str,
        *,
        on_success: Callable[[str], None],
        on_error: ErrorFn,
    ) -> None:
        def task() -> None:
            try:
                url = self._controller.object_url(key)
            except (GalleryError, NotConnectedError, ValueError) as exc:
                self._dispatch(lambda: on_error(_format_error(exc)))
            except Exception as exc:
                LOGGER.exception("Unexpected error resolving URL for '%s'", key)
                self._dispatch(lambda: on_error(_format_error(exc)))
            else:
                self._dispatch(lambda: on_success(url))

        self._spawn(task)

    def _invalidate(self) -> None:
        self._generation += 1
        self._loading = False
        self._loading_more = False
        self._projection.reset()

    def _fetch_task(
        self,
        cursor: str | None,
        page_size: int,
        apply: Callable[[ListingPage], None],
        on_error: ErrorFn,
        finish: DoneFn,
        label: str,
    ) -> Callable[[], None]:
        def task() -> None:
            try:
                page = self._controller.list_page(cursor, page_size)
            except (ListingFetchError, NotConnectedError) as exc:
                LOGGER.warning("%s failed: %s", label, exc)
                self._dispatch(lambda: on_error(_format_error(exc)))
            except Exception as exc:
                LOGGER.exception("Unexpected %s error", label.lower())
                self._dispatch(lambda: on_error(_format_error(exc)))
            else:
                LOGGER.debug("%s returned %d object(s)", label, len(page.objects))
                self._dispatch(lambda: apply(page))
            finally:
                self._dispatch(finish)

        return task
