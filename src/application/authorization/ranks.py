"""
Role ranks and rank comparison.

A role's rank is either `Default` (the implicit "everyone" role, no numeric
rank) or `Leveled(n)` with 1 the highest authority. Comparisons work on a
numeric `RankValue` where lower wins: the owner is a synthetic 0, leveled
roles are their level and default-only members are +inf.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from src.application.authorization.snapshots import MemberSnapshot

type RankValue = int | float

OWNER_RANK: RankValue = 0
LOWEST_RANK: RankValue = math.inf


@dataclass(frozen=True, slots=True)
class Default:
    """Rank of the conversation's default role"""

    def __str__(self) -> str:
        return 'default'


@dataclass(frozen=True, slots=True)
class Leveled:
    level: int

    def __post_init__(self) -> None:
        if self.level < 1:
            raise ValueError(f'Role level must be a positive integer, got {self.level}')

    def __str__(self) -> str:
        return str(self.level)


DEFAULT = Default()

type Rank = Default | Leveled


def rank_value(rank: Rank) -> RankValue:
    match rank:
        case Leveled(level=level):
            return level
        case Default():
            return LOWEST_RANK
    raise TypeError(f'Unknown rank {rank!r}')


def best_rank(ranks: Iterable[Rank]) -> RankValue:
    """Lowest-numbered leveled rank, +inf when only the default rank is present"""
    return min((rank_value(rank) for rank in ranks), default=LOWEST_RANK)


def effective_rank(member: "MemberSnapshot") -> RankValue:
    if member.is_owner:
        return OWNER_RANK
    return best_rank(role.rank for role in member.roles)


def outranks(actor: "MemberSnapshot", target: "MemberSnapshot") -> bool:
    """Strict domination, equal ranks never outrank each other"""
    return effective_rank(actor) < effective_rank(target)


def outranks_role(member: "MemberSnapshot", rank: Rank) -> bool:
    return effective_rank(member) < rank_value(rank)
