"""
Pack slot filter expressions.

A filter is a whitespace-separated list of terms; a card matches when every
term matches. `*` or an empty string matches every card.

    rarity:rare            r:m              -rarity:common
    tag:removal            t:"mana rock"    set:eld
    type:creature          is:instant       color:wu  (c:c = colorless)
    name:bolt              status:owned     finish:foil
    cmc<=2                 cmc=3            cmc!=0

Predicates only read CubeCard fields, so evaluation is pure.
"""

import re
from collections.abc import Callable
from functools import lru_cache

from cubedraft.models.card import CubeCard
from cubedraft.models.failure import ValidationError

CardPredicate = Callable[[CubeCard], bool]

RARITY_ALIASES = {
    "c": "common",
    "u": "uncommon",
    "r": "rare",
    "m": "mythic",
    "s": "special",
}

FIELD_ALIASES = {
    "rarity": "rarity",
    "r": "rarity",
    "tag": "tag",
    "t": "tag",
    "set": "set",
    "s": "set",
    "type": "type",
    "is": "type",
    "color": "color",
    "c": "color",
    "name": "name",
    "n": "name",
    "status": "status",
    "finish": "finish",
}

VALID_COLORS = frozenset("WUBRG")

# Terms: optional '-', then either a field:value or a cmc comparison.
# Values may be double-quoted to include spaces.
_TOKEN_PATTERN = re.compile(r'-?[A-Za-z]+(?::|<=|>=|!=|=|<|>)(?:"[^"]*"|\S+)|\*|\S+')
_TERM_PATTERN = re.compile(r'^(-?)([A-Za-z]+)(:|<=|>=|!=|=|<|>)(?:"([^"]*)"|(\S+))$')

_CMC_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "=": lambda a, b: a == b,
    ":": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def _match_all(_card: CubeCard) -> bool:
    return True


def _field_predicate(field_name: str, value: str) -> CardPredicate:
    needle = value.lower()

    if field_name == "rarity":
        rarity = RARITY_ALIASES.get(needle, needle)
        return lambda card: card.rarity.lower() == rarity

    if field_name == "tag":
        return lambda card: any(tag.lower() == needle for tag in card.tags)

    if field_name == "set":
        return lambda card: card.set_code.lower() == needle

    if field_name == "type":
        return lambda card: needle in card.type_line.lower()

    if field_name == "name":
        return lambda card: needle in card.name_lower

    if field_name == "status":
        return lambda card: card.status.lower() == needle

    if field_name == "finish":
        return lambda card: needle in card.finish.lower()

    if field_name == "color":
        if needle == "c":
            return lambda card: len(card.colors) == 0
        colors = set(value.upper())
        if not colors <= VALID_COLORS:
            raise ValidationError(f"Invalid color filter '{value}'", detail="Use letters WUBRG or c")
        return lambda card: colors <= set(card.colors)

    raise ValidationError(f"Unknown filter field '{field_name}'")


def _cmc_predicate(operator: str, value: str) -> CardPredicate:
    try:
        target = float(value)
    except ValueError:
        raise ValidationError(f"cmc filter needs a number, got '{value}'") from None
    compare = _CMC_OPERATORS[operator]
    return lambda card: compare(card.cmc, target)


def _parse_term(token: str) -> CardPredicate:
    match = _TERM_PATTERN.match(token)
    if not match:
        raise ValidationError(f"Cannot parse filter term '{token}'")

    negate, raw_field, operator, quoted, bare = match.groups()
    value = quoted if quoted is not None else bare
    field_key = raw_field.lower()

    if field_key == "cmc":
        predicate = _cmc_predicate(operator, value)
    else:
        if operator != ":":
            raise ValidationError(f"Operator '{operator}' is only valid for cmc")
        field_name = FIELD_ALIASES.get(field_key)
        if field_name is None:
            raise ValidationError(f"Unknown filter field '{raw_field}'")
        predicate = _field_predicate(field_name, value)

    if negate:
        return lambda card: not predicate(card)
    return predicate


@lru_cache(maxsize=256)
def parse_filter(expression: str) -> CardPredicate:
    """
    Compile a filter expression into a predicate.

    Raises:
        ValidationError: If the expression cannot be parsed
    """
    tokens = _TOKEN_PATTERN.findall(expression.strip())
    terms = [token for token in tokens if token != "*"]
    if not terms:
        return _match_all

    predicates = [_parse_term(token) for token in terms]
    return lambda card: all(predicate(card) for predicate in predicates)


def filter_cards(cards: list[CubeCard], expression: str) -> list[CubeCard]:
    """Cards matching an expression, in their original order."""
    predicate = parse_filter(expression)
    return [card for card in cards if predicate(card)]
