from cubedraft.db.database import async_session_factory, engine, get_session, init_db
from cubedraft.db.operations import (
    create_cube,
    create_draft,
    fold_draft_analytics,
    get_cube,
    get_cube_analytics,
    get_draft,
    update_cube,
    update_draft,
    update_with_retry,
)

__all__ = [
    "async_session_factory",
    "create_cube",
    "create_draft",
    "engine",
    "fold_draft_analytics",
    "get_cube",
    "get_cube_analytics",
    "get_draft",
    "get_session",
    "init_db",
    "update_cube",
    "update_draft",
    "update_with_retry",
]
