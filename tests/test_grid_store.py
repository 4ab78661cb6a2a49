import random
from dataclasses import replace

from mandala_planner.core.grid.store import FALLBACK_SHARE_MESSAGE, GridStore
from mandala_planner.core.model import ROOT_ID, GridState


def _centers(store: GridStore) -> list[str]:
    return [c.id for c in store.state.cells.values() if c.is_center_topic]


def test_initialize_builds_root_and_eight_sub_themes():
    store = GridStore.initialize()
    assert len(store) == 9
    assert store.active_center_id == ROOT_ID

    root = store.get(ROOT_ID)
    assert root is not None
    assert root.text == "Main Theme"
    assert root.is_center_topic is True
    assert root.is_expandable is False
    assert root.parent_id is None

    child = store.get("main_center_2_2")
    assert child is not None
    assert child.text == "Sub-theme 9"
    assert child.is_expandable is True
    assert (child.grid_row, child.grid_col) == (2, 2)
    assert store.get("main_center_1_1") is None


def test_current_grid_places_center_in_the_middle():
    store = GridStore.initialize()
    grid = store.current_grid()
    assert len(grid) == 3 and all(len(row) == 3 for row in grid)
    assert grid[1][1] is not None and grid[1][1].id == ROOT_ID
    assert grid[0][0] is not None and grid[0][0].text == "Sub-theme 1"
    assert grid[2][1] is not None and grid[2][1].id == "main_center_2_1"


def test_current_grid_marks_missing_slots_as_none():
    full = GridStore.initialize().state
    cells = {k: v for k, v in full.cells.items() if k != "main_center_0_1"}
    store = GridStore(GridState(cells=cells, active_center_id=ROOT_ID))
    assert store.current_grid()[0][1] is None


def test_expand_materializes_item_children():
    store = GridStore.initialize()
    assert store.expand("main_center_0_0") is True
    assert store.active_center_id == "main_center_0_0"
    assert len(store) == 17

    grid = store.current_grid()
    assert grid[1][1] is not None and grid[1][1].id == "main_center_0_0"
    assert grid[0][0] is not None and grid[0][0].text == "Item 1"
    assert grid[1][2] is not None and grid[1][2].id == "main_center_0_0_1_2"
    assert grid[1][2].text == "Item 6"
    assert grid[1][2].parent_id == "main_center_0_0"

    root = store.get(ROOT_ID)
    assert root is not None
    assert root.is_center_topic is False
    assert root.is_expandable is True


def test_expand_unknown_or_active_is_noop():
    store = GridStore.initialize()
    before = store.state
    assert store.expand("nope") is False
    assert store.expand(ROOT_ID) is False
    assert store.state == before


def test_expand_then_back_restores_flags():
    store = GridStore.initialize()
    store.expand("main_center_1_2")
    store.expand("main_center_1_2_0_0")
    before = store.state

    store.expand("main_center_1_2_0_0_2_2")
    assert store.go_back() is True

    assert store.active_center_id == before.active_center_id
    for cid in ("main_center_1_2_0_0", "main_center_1_2_0_0_2_2"):
        got = store.get(cid)
        assert got is not None
        assert got.is_center_topic == before.cells[cid].is_center_topic
        assert got.is_expandable == before.cells[cid].is_expandable


def test_go_back_on_root_is_noop():
    store = GridStore.initialize()
    before = store.state
    assert store.go_back() is False
    assert store.active_center_id == ROOT_ID
    assert store.state == before


def test_go_to_root_from_depth():
    store = GridStore.initialize()
    store.expand("main_center_0_1")
    store.expand("main_center_0_1_2_0")
    assert store.go_to_root() is True
    assert store.active_center_id == ROOT_ID
    assert _centers(store) == [ROOT_ID]
    deep = store.get("main_center_0_1_2_0")
    assert deep is not None and deep.is_expandable is True
    assert store.go_to_root() is False


def test_reexpand_keeps_edits():
    store = GridStore.initialize()
    store.expand("main_center_0_0")
    store.commit_edit("main_center_0_0_1_2", "Sprint planning")
    store.go_back()
    store.expand("main_center_0_0")

    cell = store.current_grid()[1][2]
    assert cell is not None
    assert cell.text == "Sprint planning"


def test_commit_edit_trims_and_reverts_to_placeholder():
    store = GridStore.initialize()
    assert store.commit_edit("main_center_0_2", "  Hello  ") is True
    cell = store.get("main_center_0_2")
    assert cell is not None and cell.text == "Hello"

    store.commit_edit("main_center_0_2", "   ")
    cell = store.get("main_center_0_2")
    assert cell is not None and cell.text == "Sub-theme 3"

    store.expand("main_center_0_2")
    store.commit_edit("main_center_0_2_2_1", "x")
    store.commit_edit("main_center_0_2_2_1", "")
    deep = store.get("main_center_0_2_2_1")
    assert deep is not None and deep.text == "Item 8"

    store.commit_edit(ROOT_ID, "")
    root = store.get(ROOT_ID)
    assert root is not None and root.text == "Main Theme"


def test_commit_edit_unknown_cell_is_noop():
    store = GridStore.initialize()
    before = store.state
    assert store.commit_edit("main_center_9_9", "hi") is False
    assert store.state == before


def test_begin_edit_seeds_empty_for_placeholder():
    store = GridStore.initialize()
    assert store.begin_edit("main_center_0_0") == ""
    store.commit_edit("main_center_0_0", "Health")
    assert store.begin_edit("main_center_0_0") == "Health"
    assert store.begin_edit("missing") is None


def test_begin_edit_on_other_cell_commits_pending():
    store = GridStore.initialize()
    store.begin_edit("main_center_0_0")
    store.update_edit("Health")
    store.begin_edit("main_center_0_1")

    cell = store.get("main_center_0_0")
    assert cell is not None and cell.text == "Health"
    assert store.pending_edit is not None
    assert store.pending_edit.cell_id == "main_center_0_1"


def test_navigation_commits_pending_edit_on_target():
    store = GridStore.initialize()
    store.begin_edit("main_center_2_0")
    store.update_edit("  Career ")
    assert store.expand("main_center_2_0") is True

    center = store.active_center()
    assert center is not None
    assert center.id == "main_center_2_0"
    assert center.text == "Career"
    assert store.pending_edit is None


def test_go_back_commits_pending_edit():
    store = GridStore.initialize()
    store.expand("main_center_0_0")
    store.begin_edit("main_center_0_0_0_0")
    store.update_edit("Warm up")
    store.go_back()

    cell = store.get("main_center_0_0_0_0")
    assert cell is not None and cell.text == "Warm up"


def test_has_expanded_detail():
    store = GridStore.initialize()
    assert store.has_expanded_detail("main_center_0_0") is False
    store.expand("main_center_0_0")
    assert store.has_expanded_detail("main_center_0_0") is False
    store.commit_edit("main_center_0_0_2_2", "Stretch")
    assert store.has_expanded_detail("main_center_0_0") is True
    assert store.has_expanded_detail("unknown") is False


def test_breadcrumb_and_depth():
    store = GridStore.initialize()
    store.expand("main_center_0_0")
    store.expand("main_center_0_0_1_0")

    assert [c.id for c in store.breadcrumb()] == [
        ROOT_ID,
        "main_center_0_0",
        "main_center_0_0_1_0",
    ]
    assert store.depth(ROOT_ID) == 0
    assert store.depth("main_center_0_0_1_0") == 2
    assert store.depth("missing") is None

    parent = store.parent_of_active()
    assert parent is not None and parent.id == "main_center_0_0"


def test_share_message():
    store = GridStore.initialize()
    store.commit_edit(ROOT_ID, "Life plan")
    assert store.share_message("Go.") == 'My Mandala Chart is centered on "Life plan". Go.'

    empty = GridStore(GridState(cells={}, active_center_id=ROOT_ID))
    assert empty.share_message() == FALLBACK_SHARE_MESSAGE


def test_display_text_falls_back_to_placeholder():
    store = GridStore.initialize()
    cell = store.get("main_center_1_0")
    assert cell is not None
    assert store.display_text(replace(cell, text="")) == "Sub-theme 4"
    assert store.display_text(cell) == "Sub-theme 4"


def test_single_center_topic_under_random_navigation():
    rng = random.Random(7)
    store = GridStore.initialize()
    for _ in range(300):
        action = rng.choice(["expand", "expand", "back", "root", "bogus"])
        if action == "expand":
            slots = [c for row in store.current_grid() for c in row if c is not None]
            target = rng.choice(slots)
            store.expand(target.id)
        elif action == "back":
            store.go_back()
        elif action == "root":
            store.go_to_root()
        else:
            store.expand("not-a-cell")

        assert _centers(store) == [store.active_center_id]
        for cell in store.state.cells.values():
            assert cell.is_expandable == (cell.id != store.active_center_id)


def test_go_to_root_commits_pending_edit_from_depth():
    store = GridStore.initialize()
    store.expand("main_center_1_0")
    store.expand("main_center_1_0_0_2")
    store.begin_edit("main_center_1_0_0_2_2_1")
    store.update_edit(" Book flights ")

    assert store.go_to_root() is True
    assert store.active_center_id == ROOT_ID
    assert store.pending_edit is None
    cell = store.get("main_center_1_0_0_2_2_1")
    assert cell is not None and cell.text == "Book flights"
    assert store.has_expanded_detail("main_center_1_0_0_2") is True
