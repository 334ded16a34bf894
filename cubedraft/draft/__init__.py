from cubedraft.draft.pack_generator import GeneratedPack, build_pool, generate_pack
from cubedraft.draft.pack_template import default_draft_format, resolve_slot, resolve_template
from cubedraft.draft.picks import SeatSubmission, submit_seat
from cubedraft.draft.redraft import redraft, rotate_left
from cubedraft.draft.rng import SeededRNG, mint_seed, normalize_seed
from cubedraft.draft.session_builder import build_draft

__all__ = [
    "GeneratedPack",
    "SeatSubmission",
    "SeededRNG",
    "build_draft",
    "build_pool",
    "default_draft_format",
    "generate_pack",
    "mint_seed",
    "normalize_seed",
    "redraft",
    "resolve_slot",
    "resolve_template",
    "rotate_left",
    "submit_seat",
]
