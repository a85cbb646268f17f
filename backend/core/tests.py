import pytest

from core.codec import MARKER, CorruptStateError, decode, encode
from core.reactions import REACTIONS, Reaction
from core.state import ReactionState, toggle


class TestReactions:
    def test_identifiers_bijection(self):
        identifiers = [r.identifier for r in Reaction]
        assert len(set(identifiers)) == len(Reaction)
        for reaction in Reaction:
            assert Reaction.get(reaction.identifier) is reaction

    def test_identifiers_are_stable(self):
        assert {r.identifier for r in Reaction} == {'love', 'laugh', 'anger', 'sad', 'up', 'down'}

    def test_get_unknown(self):
        assert Reaction.get('heart') is None
        assert Reaction.get('') is None
        assert Reaction.get('UP') is None

    def test_display_order(self):
        assert REACTIONS == (
            Reaction.HEART,
            Reaction.LAUGH,
            Reaction.ANGER,
            Reaction.SAD,
            Reaction.UP,
            Reaction.DOWN,
        )
        assert set(REACTIONS) == set(Reaction)

    def test_glyphs(self):
        assert Reaction.UP.glyph == '👍'
        assert Reaction.DOWN.glyph == '👎'
        assert len({r.glyph for r in Reaction}) == len(Reaction)

    def test_find(self):
        assert Reaction.find('up') is Reaction.UP
        assert Reaction.find(' Love ') is Reaction.HEART
        assert Reaction.find('heart') is Reaction.HEART
        assert Reaction.find('👍') is Reaction.UP
        assert Reaction.find('😭') is Reaction.SAD
        assert Reaction.find(Reaction.HEART.glyph) is Reaction.HEART

    def test_find_nothing(self):
        assert Reaction.find('') is None
        assert Reaction.find(None) is None
        assert Reaction.find('foo') is None
        assert Reaction.find('🦀') is None
        assert Reaction.find('👍👍') is None

    def test_commands(self):
        assert Reaction.HEART.commands == ('love', 'heart')
        assert Reaction.UP.commands == ('up',)


class TestReactionState:
    def test_empty_sets_are_dropped(self):
        state = ReactionState({Reaction.UP: {1}, Reaction.DOWN: set()})
        assert list(state) == [Reaction.UP]
        assert Reaction.DOWN not in state
        assert state[Reaction.DOWN] == frozenset()
        assert state == ReactionState({Reaction.UP: [1]})

    def test_iteration_follows_display_order(self):
        state = ReactionState({
            Reaction.DOWN: {1},
            Reaction.UP: {2},
            Reaction.HEART: {3},
        })
        assert list(state) == [Reaction.HEART, Reaction.UP, Reaction.DOWN]

    def test_compare_with_dict(self):
        state = ReactionState({Reaction.UP: {1, 2}})
        assert state == {Reaction.UP: {1, 2}}
        assert state == {Reaction.UP: {1, 2}, Reaction.SAD: set()}
        assert state != {Reaction.UP: {1}}

    def test_count(self):
        state = ReactionState({Reaction.UP: {1, 2}})
        assert state.count(Reaction.UP) == 2
        assert state.count(Reaction.SAD) == 0

    def test_union(self):
        a = ReactionState({Reaction.UP: {1}, Reaction.SAD: {3}})
        b = ReactionState({Reaction.UP: {2}})
        assert a.union(b) == {Reaction.UP: {1, 2}, Reaction.SAD: {3}}


class TestToggle:
    states = [
        ReactionState(),
        ReactionState({Reaction.UP: {1}}),
        ReactionState({Reaction.UP: {1, 2}, Reaction.HEART: {2}}),
        ReactionState({Reaction.UP: set(), Reaction.DOWN: {7}}),
    ]

    def test_add(self):
        state, added = toggle(ReactionState(), Reaction.UP, 1)
        assert added
        assert state == {Reaction.UP: {1}}

    def test_remove(self):
        state, added = toggle(ReactionState({Reaction.UP: {1, 2}}), Reaction.UP, 1)
        assert not added
        assert state == {Reaction.UP: {2}}

    def test_remove_last_vote(self):
        state, added = toggle(ReactionState({Reaction.UP: {1}}), Reaction.UP, 1)
        assert not added
        assert Reaction.UP not in state
        assert len(state) == 0

    def test_original_state_is_untouched(self):
        state = ReactionState({Reaction.UP: {1}})
        toggle(state, Reaction.UP, 2)
        assert state == {Reaction.UP: {1}}

    @pytest.mark.parametrize('state', states)
    @pytest.mark.parametrize('reaction', REACTIONS)
    def test_double_toggle_is_identity(self, state, reaction):
        once, added = toggle(state, reaction, 2)
        twice, added_again = toggle(once, reaction, 2)
        assert twice == state
        assert added != added_again

    @pytest.mark.parametrize('state', states)
    @pytest.mark.parametrize('reaction', REACTIONS)
    def test_other_reactions_are_independent(self, state, reaction):
        new_state, _ = state.toggle(reaction, 1)
        for other in REACTIONS:
            if other is not reaction:
                assert new_state[other] == state[other]


class TestCodec:
    def test_encode_empty(self):
        encoded = encode(ReactionState())
        assert encoded.text == MARKER
        assert encoded.url is None
        assert encoded.html == MARKER

    def test_encode(self):
        state = ReactionState({Reaction.UP: {3}, Reaction.HEART: {2, 1}})
        encoded = encode(state)
        assert encoded.url == 'https://reaxnbot.dev/reactions?love=1,2&up=3'
        assert encoded.text == f'{MARKER} ❤️ 2  👍 1'
        assert encoded.html == (
            f'<a href="https://reaxnbot.dev/reactions?love=1,2&amp;up=3">{MARKER}</a> '
            '❤️ <b>2</b>  👍 <b>1</b>'
        )

    def test_encode_ignores_empty_reactions(self):
        with_empty = ReactionState({Reaction.UP: {1}, Reaction.SAD: set()})
        without = ReactionState({Reaction.UP: {1}})
        assert encode(with_empty) == encode(without)

    @pytest.mark.parametrize('votes', [
        {},
        {Reaction.UP: {1}},
        {Reaction.DOWN: {5, 4, 3}, Reaction.LAUGH: {1}},
        {r: {i, 100 + i} for i, r in enumerate(REACTIONS)},
        {Reaction.ANGER: {-1001234567890, 123456789012}},
    ])
    def test_round_trip(self, votes):
        state = ReactionState(votes)
        encoded = encode(state)
        links = [encoded.url] if encoded.url else []
        assert decode(encoded.text, links) == state

    def test_decode_not_reaction_message(self):
        assert decode('hello', []) is None
        assert decode(None, []) is None

    def test_decode_foreign_link(self):
        assert decode('hello', ['https://example.com/reactions?up=1']) is None
        assert decode('hello', ['https://reaxnbot.dev/other?up=1']) is None

    def test_decode_marker_only(self):
        assert decode(MARKER, []) == ReactionState()

    def test_decode_ignores_foreign_links(self):
        links = [
            'https://example.com/?up=abc',
            'https://reaxnbot.dev/reactions?up=1',
        ]
        assert decode(f'{MARKER} 👍 1', links) == {Reaction.UP: {1}}

    def test_decode_merges_links(self):
        links = [
            'https://reaxnbot.dev/reactions?up=1&love=2',
            'https://reaxnbot.dev/reactions?up=3',
        ]
        assert decode(MARKER, links) == {Reaction.UP: {1, 3}, Reaction.HEART: {2}}

    def test_decode_repeated_key(self):
        links = ['https://reaxnbot.dev/reactions?up=1&up=2']
        assert decode(MARKER, links) == {Reaction.UP: {1, 2}}

    def test_decode_escaped_delimiter(self):
        links = ['https://reaxnbot.dev/reactions?up=1%2C2']
        assert decode(MARKER, links) == {Reaction.UP: {1, 2}}

    @pytest.mark.parametrize('url', [
        'https://reaxnbot.dev/reactions?up=1,x',
        'https://reaxnbot.dev/reactions?up=1,,2',
        'https://reaxnbot.dev/reactions?up=',
        'https://reaxnbot.dev/reactions?up=1.5',
        'https://reaxnbot.dev/reactions?up=%201',
        'https://reaxnbot.dev/reactions?heart=1',
        'https://reaxnbot.dev/reactions?up=1&wow=2',
    ])
    def test_decode_corrupt(self, url):
        with pytest.raises(CorruptStateError):
            decode(MARKER, [url])
