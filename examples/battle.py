"""
A small battle model checked with ConformOS.

    python -m conformos check examples/battle.py --seed 7

The second invariant is wrong on purpose: armor can exceed attack, and the
report names the field that breaks it.
"""

from conformos import UINT8, UINT16, checked, enum_of, fn, forall, maybe, named, pair, struct

Stats = named(struct(atk=UINT8, def_=UINT8, hp=UINT16), "Stats")
Element = enum_of("fire", "water", "grass")
Fighter = named(struct(stats=Stats, element=Element, title=maybe(Element)), "Fighter")

ADVANTAGE = {("fire", "grass"), ("water", "fire"), ("grass", "water")}


@checked(fn(pair(Fighter, Fighter), UINT16))
def damage(matchup):
    attacker, defender = matchup
    base = max(attacker["stats"]["atk"] - defender["stats"]["def_"], 0)
    if (attacker["element"], defender["element"]) in ADVANTAGE:
        base *= 2
    return base


forall([Fighter, Fighter], lambda a, b: damage((a, b)) >= 0, name="damage is never negative")

forall(
    [Fighter, Fighter],
    lambda a, b: damage((a, b)) > 0,
    name="every hit lands",
)
