from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple

from .reactions import REACTIONS, Reaction


class ReactionState(Mapping):
    """
    Users who voted for each reaction on a single message.

    Reactions without votes are never stored, so two states are equal
    whenever they have the same non-empty vote sets.
    Iteration follows display order of reactions.
    """

    def __init__(self, votes: Optional[Mapping[Reaction, Iterable[int]]] = None):
        self._votes: Dict[Reaction, FrozenSet[int]] = {}
        for reaction, users in (votes or {}).items():
            users = frozenset(users)
            if users:
                self._votes[Reaction(reaction)] = users

    def __getitem__(self, reaction: Reaction) -> FrozenSet[int]:
        return self._votes.get(reaction, frozenset())

    def __iter__(self) -> Iterator[Reaction]:
        return (r for r in REACTIONS if r in self._votes)

    def __len__(self):
        return len(self._votes)

    def __contains__(self, reaction):
        return reaction in self._votes

    def __eq__(self, other):
        if isinstance(other, ReactionState):
            return self._votes == other._votes
        if isinstance(other, Mapping):
            return self == ReactionState(other)
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._votes.items()))

    def __repr__(self):
        votes = ', '.join(f'{r}={sorted(users)}' for r, users in self.items())
        return f'ReactionState({votes})'

    def count(self, reaction: Reaction) -> int:
        return len(self[reaction])

    def union(self, other: 'ReactionState') -> 'ReactionState':
        votes = {r: self[r] | other[r] for r in REACTIONS}
        return ReactionState(votes)

    def toggle(self, reaction: Reaction, user_id: int) -> Tuple['ReactionState', bool]:
        return toggle(self, reaction, user_id)


def toggle(state: ReactionState, reaction: Reaction, user_id: int) -> Tuple[ReactionState, bool]:
    """
    Add user's vote for reaction or take it back if it was already there.
    Return new state and True if vote was added.
    """
    users = state[reaction]
    added = user_id not in users
    votes = dict(state.items())
    votes[reaction] = users | {user_id} if added else users - {user_id}
    return ReactionState(votes), added
