import pytest

from engine.scenario_store import ScenarioStore, ScenarioStoreFull


def test_store_holds_at_most_five(household_inputs):
    store = ScenarioStore()
    for i in range(5):
        store.save(f"plan {i}", household_inputs)
    assert len(store) == 5

    with pytest.raises(ScenarioStoreFull):
        store.save("plan 5", household_inputs)

    # Overwriting an existing name is still allowed when full
    store.save("plan 2", household_inputs, result="rerun")
    assert store.get("plan 2").result == "rerun"
    assert store.names() == [f"plan {i}" for i in range(5)]


def test_delete_frees_a_slot(household_inputs):
    store = ScenarioStore(max_scenarios=1)
    store.save("base", household_inputs)
    assert store.delete("base")
    assert not store.delete("base")
    store.save("retire later", household_inputs)
    assert "retire later" in store
    assert store.get("base") is None


def test_selection_is_capped_at_three(household_inputs):
    store = ScenarioStore()
    for name in ("a", "b", "c", "d"):
        store.save(name, household_inputs)

    assert store.toggle_selection("a")
    assert store.toggle_selection("b")
    assert store.toggle_selection("c")
    assert not store.toggle_selection("d")
    assert [s.name for s in store.selected()] == ["a", "b", "c"]

    # Toggling again deselects
    assert not store.toggle_selection("b")
    assert [s.name for s in store.selected()] == ["a", "c"]

    store.delete("a")
    assert [s.name for s in store.selected()] == ["c"]
    store.clear_selection()
    assert store.selected() == []

    with pytest.raises(KeyError):
        store.toggle_selection("zzz")


def test_blank_names_are_rejected(household_inputs):
    with pytest.raises(ValueError):
        ScenarioStore().save("   ", household_inputs)
