from cubedraft.config import settings
from cubedraft.models.draft import BotDescriptor, BotKind


def new_bot_descriptor(seat_index: int, kind: BotKind | str | None = None) -> BotDescriptor:
    """A fresh bot strategy for a seat. Decision logic is the simulator's concern."""
    bot_kind = BotKind(kind or settings.default_bot_kind)
    return BotDescriptor(kind=bot_kind, params={"seat": seat_index})


def bot_seat_name(seat_index: int) -> str:
    return f"Bot {seat_index + 1}"
