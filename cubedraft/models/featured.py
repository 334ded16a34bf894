from dataclasses import dataclass, field
from datetime import datetime

from cubedraft.config import DEFAULT_DAYS_BETWEEN_ROTATIONS


@dataclass(frozen=True, slots=True)
class FeaturedEntry:
    """A cube waiting in (or at the head of) the featured rotation."""

    cube_id: str
    owner_id: str


@dataclass(frozen=True)
class FeaturedQueue:
    """
    Snapshot of the featured cube rotation schedule.

    The first two entries are the currently featured cubes.
    """

    entries: tuple[FeaturedEntry, ...] = ()
    days_between_rotations: int = DEFAULT_DAYS_BETWEEN_ROTATIONS
    last_rotation: datetime | None = field(default=None)

    def index_of(self, cube_id: str) -> int | None:
        for index, entry in enumerate(self.entries):
            if entry.cube_id == cube_id:
                return index
        return None

    def cube_ids(self) -> list[str]:
        return [entry.cube_id for entry in self.entries]
