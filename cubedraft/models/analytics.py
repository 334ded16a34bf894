from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class CardRating:
    """Per-cube statistics for one card name."""

    pick_count: int = 0
    pass_count: int = 0
    elo: float = 1200.0


@dataclass
class CubeAnalytics:
    """
    Running draft statistics for a cube.

    Ratings are keyed by lower-cased card name so every printing of a card
    shares one bucket.
    """

    cube_id: str
    cards: dict[str, CardRating] = field(default_factory=dict)

    def rating_for(self, name: str) -> CardRating | None:
        return self.cards.get(name.lower())

    def elo_overrides(self) -> dict[str, float]:
        """Lower-cased card name -> cube rating."""
        return {name: rating.elo for name, rating in self.cards.items()}
