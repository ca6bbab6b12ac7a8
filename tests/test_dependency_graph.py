from tarkov_tracker.dependency_graph import (
    build_quest_map,
    compute_quest_status,
    filter_quests_by_trader,
    get_quest_chain,
    get_quest_maps,
    resolve_quest_statuses,
)
from tarkov_tracker.models import Objective, QuestDependency, QuestStatus
from tests.helpers import make_quests


def test_explicit_status_wins():
    quests = make_quests([("a", "prapor"), ("b", "prapor")], deps=[("a", "b")])
    quests[1].progress_status = "COMPLETED"
    assert compute_quest_status(quests[1], build_quest_map(quests)) is QuestStatus.COMPLETED


def test_quest_without_prerequisites_is_available():
    quests = make_quests([("a", "prapor")])
    assert compute_quest_status(quests[0], build_quest_map(quests)) is QuestStatus.AVAILABLE


def test_prerequisites_must_be_completed():
    quests = make_quests(
        [("a", "prapor"), ("b", "prapor"), ("c", "prapor")],
        deps=[("a", "c"), ("b", "c")],
        statuses={"a": QuestStatus.COMPLETED, "b": QuestStatus.IN_PROGRESS},
    )
    quest_map = build_quest_map(quests)
    assert compute_quest_status(quest_map["c"], quest_map) is QuestStatus.LOCKED
    quest_map["b"].computed_status = QuestStatus.COMPLETED
    assert compute_quest_status(quest_map["c"], quest_map) is QuestStatus.AVAILABLE


def test_missing_prerequisite_is_ignored():
    quests = make_quests([("b", "prapor")])
    quests[0].depends_on.append(QuestDependency(required_quest_id="gone", required_trader_id="prapor"))
    assert compute_quest_status(quests[0], build_quest_map(quests)) is QuestStatus.AVAILABLE


def test_resolve_unlocks_chain_in_any_input_order():
    quests = make_quests([("c", "prapor"), ("b", "prapor"), ("a", "prapor")], deps=[("a", "b"), ("b", "c")])
    quest_map = build_quest_map(quests)
    quest_map["a"].progress_status = QuestStatus.COMPLETED
    quest_map["b"].progress_status = "completed"

    statuses = resolve_quest_statuses(quests)

    assert statuses == {"a": QuestStatus.COMPLETED, "b": QuestStatus.COMPLETED, "c": QuestStatus.AVAILABLE}
    assert quest_map["c"].computed_status is QuestStatus.AVAILABLE


def test_resolve_locks_dependents_of_incomplete_quests():
    quests = make_quests([("a", "prapor"), ("b", "prapor"), ("c", "prapor")], deps=[("a", "b"), ("b", "c")])
    statuses = resolve_quest_statuses(quests)
    assert statuses == {"a": QuestStatus.AVAILABLE, "b": QuestStatus.LOCKED, "c": QuestStatus.LOCKED}


def test_resolve_survives_cycles():
    quests = make_quests([("a", "prapor"), ("b", "prapor"), ("c", "prapor")], deps=[("a", "b"), ("b", "a")])
    statuses = resolve_quest_statuses(quests)
    assert set(statuses) == {"a", "b", "c"}
    assert statuses["c"] is QuestStatus.AVAILABLE


def test_chain_contains_ancestors_and_descendants():
    # a depends on b, b depends on c
    quests = make_quests([("a", "prapor"), ("b", "prapor"), ("c", "prapor"), ("x", "skier")], deps=[("c", "b"), ("b", "a")])
    assert get_quest_chain("b", quests) == {"a", "b", "c"}
    assert get_quest_chain("x", quests) == {"x"}


def test_chain_walks_across_traders_and_branches():
    quests = make_quests(
        [("a", "prapor"), ("b", "therapist"), ("c", "prapor"), ("d", "skier")],
        deps=[("a", "b"), ("b", "c"), ("b", "d")],
    )
    assert get_quest_chain("a", quests) == {"a", "b", "c", "d"}
    assert get_quest_chain("c", quests) == {"a", "b", "c"}


def test_chain_is_cycle_safe():
    quests = make_quests([("a", "prapor"), ("b", "prapor")], deps=[("a", "b"), ("b", "a")])
    assert get_quest_chain("a", quests) == {"a", "b"}


def test_chain_for_unknown_quest():
    assert get_quest_chain("nope", make_quests([("a", "prapor")])) == {"nope"}


def test_quest_maps_sorted_unique():
    quests = make_quests([("a", "prapor"), ("b", "skier")])
    quests[0].objectives = [Objective(id="1", quest_id="a", map_name="Woods"), Objective(id="2", quest_id="a")]
    quests[1].objectives = [Objective(id="3", quest_id="b", map_name="Customs"), Objective(id="4", quest_id="b", map_name="Woods")]
    assert get_quest_maps(quests) == ["Customs", "Woods"]


def test_filter_by_trader_ignores_case():
    quests = make_quests([("debut", "Prapor"), ("shortage", "therapist"), ("checking", "prapor")])
    assert [q.id for q in filter_quests_by_trader(quests, "prapor")] == ["debut", "checking"]
    assert [q.id for q in filter_quests_by_trader(quests, "THERAPIST")] == ["shortage"]
    assert filter_quests_by_trader(quests, "skier") == []
