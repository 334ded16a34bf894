"""Tests for pack slot filter expressions."""

import pytest

from cubedraft.draft.filters import filter_cards, parse_filter
from cubedraft.models.card import CubeCard
from cubedraft.models.failure import ValidationError


def _card(**overrides) -> CubeCard:
    values = {
        "card_id": "x",
        "name": "Goblin Guide",
        "set_code": "zen",
        "rarity": "rare",
        "type_line": "Creature - Goblin Scout",
        "colors": ("R",),
        "cmc": 1.0,
        "tags": ("Aggro", "mana rock"),
        "status": "Owned",
        "finish": "Non-foil",
        "elo": 1200.0,
    }
    values.update(overrides)
    return CubeCard(**values)


class TestParseFilter:
    @pytest.mark.parametrize("expression", ["*", "", "   "])
    def test_match_all(self, expression: str) -> None:
        """Star and blank expressions match every card."""
        assert parse_filter(expression)(_card())

    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("rarity:rare", True),
            ("r:r", True),
            ("r:m", False),
            ("-rarity:common", True),
            ("tag:aggro", True),
            ('t:"mana rock"', True),
            ("t:control", False),
            ("set:ZEN", True),
            ("type:creature", True),
            ("is:instant", False),
            ("color:r", True),
            ("c:wr", False),
            ("c:c", False),
            ("name:goblin", True),
            ("status:owned", True),
            ("finish:foil", True),
            ("cmc=1", True),
            ("cmc:1", True),
            ("cmc<=2", True),
            ("cmc>1", False),
            ("cmc!=0", True),
            ("rarity:rare cmc<2 type:goblin", True),
            ("rarity:rare cmc>2", False),
        ],
    )
    def test_terms(self, expression: str, expected: bool) -> None:
        """Each supported term matches the sample card as expected."""
        assert parse_filter(expression)(_card()) is expected

    def test_colorless(self) -> None:
        """c:c matches only colorless cards."""
        assert parse_filter("c:c")(_card(colors=()))

    @pytest.mark.parametrize(
        "expression",
        ["power:3", "cmc<=two", "rarity<rare", "color:x", "nonsense"],
    )
    def test_invalid_expressions_raise(self, expression: str) -> None:
        """Unknown fields, bad numbers, bad operators and bad colors are rejected."""
        with pytest.raises(ValidationError):
            parse_filter(expression)


class TestFilterCards:
    def test_preserves_order(self) -> None:
        """Matching cards keep their pool order."""
        cards = [
            _card(card_id="a", rarity="common"),
            _card(card_id="b", rarity="rare"),
            _card(card_id="c", rarity="rare"),
        ]
        result = filter_cards(cards, "rarity:rare")
        assert [card.card_id for card in result] == ["b", "c"]
