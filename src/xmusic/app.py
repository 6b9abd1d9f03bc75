import logging
import os
import sys

from PySide6.QtCore import QCoreApplication, QStandardPaths, QTimer

from xmusic.core.state import AppState, Notify
from xmusic.db.database import get_config
from xmusic.db.migrations import initialize_database
from xmusic.library.music_library import MusicLibrary

logger = logging.getLogger("xmusic")


def debug_print_schema(db) -> None:
    for table in ("settings", "directories", "config_data"):
        cur = db.execute(f"PRAGMA table_info({table})")
        print(f"\n[{table} table schema]")
        for _cid, name, col_type, _notnull, _default, _pk in cur.fetchall():
            print(f"- {name} ({col_type})")


def configure_logging() -> None:
    level = os.getenv("XMUSIC_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_app_data_dir() -> str:
    base = os.getenv("XMUSIC_DATA_DIR") or QStandardPaths.writableLocation(
        QStandardPaths.AppDataLocation
    )
    os.makedirs(base, exist_ok=True)
    return base


def init_app_state() -> AppState:
    app_state = AppState()

    app_data_dir = get_app_data_dir()
    app_state.app_data_dir = app_data_dir
    app_state.db = initialize_database(app_data_dir)
    app_state.config = get_config(app_state.db)

    if os.getenv("XMUSIC_DEBUG_SCHEMA") == "1":
        debug_print_schema(app_state.db)

    app_state.library = MusicLibrary(app_state.db, app_state.config)
    app_state.library.notification.connect(app_state.notification.emit)

    try:
        from xmusic.player.player import Player
        from xmusic.player.queue import PlayQueue

        app_state.player = Player(volume=app_state.config.volume)
        app_state.queue = PlayQueue(app_state.player, auto_advance=app_state.config.auto_advance)
    except Exception as e:
        app_state.player = None
        app_state.queue = None
        app_state.queued_notifications.append(
            Notify(message=f"Failed to initialize audio player: {e}", notify_type="error")
        )

    return app_state


def print_summary(library: MusicLibrary) -> None:
    print(f"{len(library.tracks)} tracks, {len(library.albums)} albums, {len(library.artists)} artists")
    for artist in library.artists:
        print(f"{artist.name}")
        for album in artist.albums:
            print(f"  {album.title} ({len(album.tracks)} tracks, {album.formatted_duration})")
    for playlist in library.playlists.playlists:
        print(f"[playlist] {playlist.name}: {len(library.playlist_tracks(playlist.id))} tracks")


def main() -> int:
    configure_logging()
    app = QCoreApplication(sys.argv)
    directories = app.arguments()[1:]

    app_state = init_app_state()
    for notify in app_state.queued_notifications:
        logger.warning("%s", notify.message)
    app_state.notification.connect(lambda n: logger.warning("%s", n.message))

    library = app_state.library

    def on_loaded() -> None:
        if not directories:
            print_summary(library)
            app.quit()
            return
        for directory in directories:
            library.scan_directory(directory)

    def on_scan_finished(added: int) -> None:
        logger.info("Scan added %d tracks", added)
        if not library.is_scanning:
            print_summary(library)
            app.quit()

    library.loaded.connect(on_loaded)
    library.scan_finished.connect(on_scan_finished)
    # stored tracks are re-extracted on a worker, so load inside the event loop
    QTimer.singleShot(0, library.load)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
