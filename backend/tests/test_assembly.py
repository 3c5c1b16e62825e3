import pytest

from wortex.services.game.assembly import AssemblyStateMachine, first_unnecessary, open_slot
from wortex.services.game.pool import WordPoolScheduler
from wortex.services.game.session import Phase, Session
from wortex.services.game.tokenizer import build_phrases, unique_word_count


TARGET = 'To be or not to be'
FACSIMILE = 'Existence is the question'


class Game:
    def __init__(self, target=TARGET, facsimile=FACSIMILE, seed=None):
        self.target, self.facsimile = build_phrases(target, facsimile)
        self.scheduler = WordPoolScheduler.from_phrases(self.target, self.facsimile, capacity=50)
        self.machine = AssemblyStateMachine(
            self.target, self.facsimile, self.scheduler, unique_word_count(self.target, self.facsimile)
        )
        self.session = Session(seed=seed)

    def offer(self, catalog_key):
        token = next(t for t in self.scheduler.catalog if t.catalog_key == catalog_key)
        return self.scheduler.reinstate(self.session, token)

    def put(self, catalog_key, container='target'):
        entry = self.offer(catalog_key)
        return self.machine.place(self.session, entry.instance_id, container)

    def collect(self, indices):
        return [self.put(f'target-{i}') for i in indices]

    def target_texts(self):
        return [p.text.lower() for p in self.session.target_words]

    def target_ids(self):
        return [p.instance_id for p in self.session.target_words]


@pytest.fixture
def game():
    return Game()


def test_target_container_accepts_any_word(game):
    placed = game.put('facsimile-3')
    assert placed is not None
    assert placed.container == 'target'
    assert placed.position == 0
    assert game.session.phase == Phase.COLLECTING
    assert game.session.working_set == []


def test_facsimile_container_slots_words_in_place(game):
    placed = game.put('facsimile-2', 'facsimile')
    assert placed.position == 2
    placed = game.put('facsimile-0', 'facsimile')
    assert placed.position == 0
    assert [p.position for p in game.session.facsimile_words] == [0, 2]


def test_facsimile_container_rejects_words_it_cannot_use(game):
    entry = game.offer('target-3')
    assert game.machine.place(game.session, entry.instance_id, 'facsimile') is None
    assert entry in game.session.working_set

    game.put('facsimile-1', 'facsimile')
    extra = game.offer('facsimile-1')
    assert game.machine.place(game.session, extra.instance_id, 'facsimile') is None
    assert extra in game.session.working_set


def test_open_slot_prefers_lowest_free_position():
    target = build_phrases('a b a', '')[0]
    assert open_slot(target.keys, [], 'A') == 0


def test_place_unknown_instance_or_container(game):
    entry = game.offer('target-0')
    assert game.machine.place(game.session, 'missing', 'target') is None
    assert game.machine.place(game.session, entry.instance_id, 'sideboard') is None
    assert entry in game.session.working_set


def test_phase1_completes_on_multiset_not_order(game):
    game.collect([5, 3, 2, 1, 0])
    assert game.session.phase == Phase.COLLECTING
    game.collect([4])
    assert game.session.phase == Phase.PHASE1_PENDING


def test_phase1_needs_every_repeat(game):
    # "to" and "be" are each needed twice
    game.collect([0, 1, 2, 3])
    game.put('target-0')
    assert game.session.phase == Phase.COLLECTING
    game.put('target-1')
    assert game.session.phase == Phase.PHASE1_PENDING


def test_extra_words_do_not_block_completion(game):
    game.put('facsimile-3')
    game.collect(range(6))
    assert game.session.phase == Phase.PHASE1_PENDING
    assert len(game.session.target_words) == 7


def test_phase1_pending_ignores_collecting_calls(game):
    game.collect(range(6))
    entry = game.offer('facsimile-0')
    assert game.machine.place(game.session, entry.instance_id, 'target') is None
    first = game.session.target_words[0]
    assert game.machine.remove(game.session, first.instance_id, 'target') is None
    assert game.machine.reorder(game.session, list(reversed(game.target_ids()))) is False
    assert game.machine.hint(game.session, 'next_word') is None
    assert game.machine.confirm_phase2(game.session) is False


def test_confirm_phase1_only_from_pending(game):
    assert game.machine.confirm_phase1(game.session) is False
    assert game.session.phase == Phase.COLLECTING


def test_remove_returns_word_to_pool_and_renumbers(game):
    placed = game.collect([0, 1, 2])
    returned = game.machine.remove(game.session, placed[1].instance_id, 'target')
    assert returned is not None
    assert returned.instance_id != placed[1].instance_id
    assert returned.token == placed[1].token
    assert returned in game.session.working_set
    assert [p.position for p in game.session.target_words] == [0, 1]
    assert game.session.total_words_emitted == 0


def test_remove_from_facsimile_keeps_other_slots(game):
    game.put('facsimile-0', 'facsimile')
    third = game.put('facsimile-2', 'facsimile')
    game.machine.remove(game.session, third.instance_id, 'facsimile')
    assert [p.position for p in game.session.facsimile_words] == [0]
    again = game.put('facsimile-2', 'facsimile')
    assert again.position == 2


def test_unseeded_confirm_keeps_collection_order(game):
    game.collect([1, 0, 2, 3, 4, 5])
    order = game.target_ids()
    assert game.machine.confirm_phase1(game.session)
    assert game.session.phase == Phase.REORDERING
    assert game.target_ids() == order


def test_solved_collection_skips_straight_to_phase2_pending(game):
    game.collect(range(6))
    assert game.machine.confirm_phase1(game.session)
    assert game.session.phase == Phase.PHASE2_PENDING
    assert game.session.score.phase2_score == 0


def test_reorder_counts_moves_and_completes(game):
    game.collect([1, 0, 2, 3, 4, 5])
    game.machine.confirm_phase1(game.session)
    ids = game.target_ids()
    solved = [ids[1], ids[0]] + ids[2:]
    assert game.machine.reorder(game.session, solved)
    assert game.session.moves == 1
    assert game.session.phase == Phase.PHASE2_PENDING
    assert all(p.status == 'correct' for p in game.session.target_words)
    assert game.session.score.phase2_score == 0.25


def test_reorder_rejects_non_permutations_and_ignores_noops(game):
    game.collect([1, 0, 2, 3, 4, 5])
    game.machine.confirm_phase1(game.session)
    ids = game.target_ids()
    assert game.machine.reorder(game.session, ids) is False
    assert game.machine.reorder(game.session, ids[:-1]) is False
    assert game.machine.reorder(game.session, ids[:-1] + ['bogus']) is False
    assert game.session.moves == 0
    assert game.session.phase == Phase.REORDERING


def test_move_single_word(game):
    game.collect([1, 0, 2, 3, 4, 5])
    game.machine.confirm_phase1(game.session)
    first = game.session.target_words[0]
    assert game.machine.move(game.session, first.instance_id, 1)
    assert game.target_texts() == ['to', 'be', 'or', 'not', 'to', 'be']
    assert game.session.phase == Phase.PHASE2_PENDING
    assert game.machine.move(game.session, 'missing', 0) is False


def test_extras_are_tagged_and_dropped_on_confirm(game):
    game.put('facsimile-3')
    game.collect(range(6))
    game.machine.confirm_phase1(game.session)
    assert game.session.phase == Phase.REORDERING

    ids = game.target_ids()
    game.machine.reorder(game.session, ids[1:] + ids[:1])
    assert game.session.phase == Phase.PHASE2_PENDING
    assert [p.status for p in game.session.target_words] == ['correct'] * 6 + ['extra']

    assert game.machine.confirm_phase2(game.session)
    assert game.session.phase == Phase.FINISHED
    assert game.target_texts() == ['to', 'be', 'or', 'not', 'to', 'be']


def test_hints_charge_once_per_new_highlight(game):
    game.put('facsimile-3')
    game.collect(range(6))
    game.machine.confirm_phase1(game.session)
    extra_id = game.session.target_words[0].instance_id

    assert game.machine.hint(game.session, 'unnecessary') == (extra_id,)
    assert game.machine.hint(game.session, 'unnecessary') == (extra_id,)
    assert game.session.hints_used['unnecessary'] == 1

    # nothing correct yet, so there is nothing to show and nothing to pay
    assert game.machine.hint(game.session, 'correct_string') is None
    assert game.session.hints_used['correct_string'] == 0

    needed = game.machine.hint(game.session, 'next_word')
    assert needed == (game.session.target_words[1].instance_id,)
    assert game.session.hints_used['next_word'] == 1
    assert game.session.hints_total == 2


def test_reorder_clears_active_hint(game):
    game.put('facsimile-3')
    game.collect(range(6))
    game.machine.confirm_phase1(game.session)
    game.machine.hint(game.session, 'unnecessary')
    ids = game.target_ids()
    game.machine.reorder(game.session, [ids[1], ids[0]] + ids[2:])
    assert game.session.active_hint is None
    game.machine.hint(game.session, 'unnecessary')
    assert game.session.hints_used['unnecessary'] == 2


def test_unknown_hint_kind(game):
    game.collect([1, 0, 2, 3, 4, 5])
    game.machine.confirm_phase1(game.session)
    assert game.machine.hint(game.session, 'everything') is None


def test_first_unnecessary_respects_multiplicity():
    game = Game('a b a', '')
    placed = [game.put('target-0') for _ in range(3)]
    assert game.session.phase == Phase.COLLECTING
    assert first_unnecessary(game.target.keys, game.session.target_words) is placed[2]


def test_seeded_confirm_shuffles_away_from_solution():
    game = Game(seed=1234)
    game.collect(range(6))
    game.machine.confirm_phase1(game.session)
    assert game.session.phase == Phase.REORDERING
    assert game.target_texts() != ['to', 'be', 'or', 'not', 'to', 'be']
    assert [p.position for p in game.session.target_words] == list(range(6))


def test_seeded_confirm_is_reproducible():
    a, b = Game(seed=99), Game(seed=99)
    for g in (a, b):
        g.collect(range(6))
        g.machine.confirm_phase1(g.session)
    assert [p.token.catalog_key for p in a.session.target_words] == \
        [p.token.catalog_key for p in b.session.target_words]


def test_single_word_quote_cannot_be_shuffled():
    game = Game('Hello', 'World', seed=5)
    game.put('target-0')
    assert game.session.phase == Phase.PHASE1_PENDING
    game.machine.confirm_phase1(game.session)
    assert game.session.phase == Phase.PHASE2_PENDING


def test_live_scores_track_emissions(game):
    game.scheduler.prime(game.session, 4)
    scores = game.machine.live_scores(game.session)
    assert scores == {'phase1_score': 0.5, 'phase2_score': 0}


def test_bonus_applies_once_after_finish(game):
    game.session.total_words_emitted = 16
    game.collect(range(6))
    assert game.machine.answer_bonus(game.session, True) is None

    game.machine.confirm_phase1(game.session)
    game.machine.confirm_phase2(game.session)
    assert game.session.phase == Phase.FINISHED

    record = game.machine.answer_bonus(game.session, True)
    assert record.bonus_correct is True
    assert record.final_score == 1.8
    assert game.machine.answer_bonus(game.session, False) is None
    assert game.session.score.final_score == 1.8


def test_skipped_bonus_counts_as_wrong(game):
    game.collect(range(6))
    game.machine.confirm_phase1(game.session)
    game.machine.confirm_phase2(game.session)
    record = game.machine.skip_bonus(game.session)
    assert record.bonus_correct is False
    assert record.final_score == record.phase1_score + record.phase2_score
    assert game.session.bonus_answered


def test_phase1_score_is_fixed_when_collection_completes():
    steady, switched = Game(), Game()
    for g in (steady, switched):
        g.session.record_speed(0.5)
        g.session.total_words_emitted = 10
        g.collect([1, 0, 2, 3, 4, 5])
        assert g.session.phase == Phase.PHASE1_PENDING
        assert g.session.phase1_score == 2.5

    # Speeding up once nothing is emitted any more must not buy a better score
    switched.session.record_speed(2.0)
    for g in (steady, switched):
        g.machine.confirm_phase1(g.session)
        ids = g.target_ids()
        g.machine.reorder(g.session, [ids[1], ids[0]] + ids[2:])
        assert g.session.phase == Phase.PHASE2_PENDING

    assert switched.machine.live_scores(switched.session)['phase1_score'] == 2.5
    assert switched.session.score.phase1_score == steady.session.score.phase1_score == 2.5
    assert switched.session.score.final_score == steady.session.score.final_score == 2.75
