from pagewriter.config import Settings
from pagewriter.docs import Document, HistoryManager, HistorySnapshot, MarkupEditingSurface, Page, PageStore


def _store(capacity=50):
    doc = Document(pages=[Page(id="p0", content="<div><p>start</p></div>")])
    surface = MarkupEditingSurface()
    return PageStore(doc, HistoryManager(capacity), surface, Settings()), surface


def test_history_manager_basic_stacks():
    hm = HistoryManager(capacity=3)
    s1, s2, cur = HistorySnapshot("[1]"), HistorySnapshot("[2]"), HistorySnapshot("[cur]")
    assert hm.undo(cur) is None
    hm.commit(s1)
    hm.commit(s2)
    assert hm.undo(cur) == s2
    assert hm.can_redo
    assert hm.redo(s2) == cur
    assert hm.undo_depth == 2


def test_history_capacity_evicts_oldest():
    hm = HistoryManager(capacity=2)
    for i in range(4):
        hm.commit(HistorySnapshot(f"[{i}]"))
    assert hm.undo_depth == 2
    assert hm.undo(HistorySnapshot("[x]")) == HistorySnapshot("[3]")
    assert hm.undo(HistorySnapshot("[x]")) == HistorySnapshot("[2]")
    assert hm.undo(HistorySnapshot("[x]")) is None


def test_undo_n_times_restores_initial_then_redo_restores_final():
    store, surface = _store()
    initial = store.document.snapshot()
    n = 5
    for i in range(n):
        surface.edit("p0", f"<div><p>edit {i}</p></div>")
    store.add_page()
    final = store.document.snapshot()

    for _ in range(n + 1):
        assert store.undo()
    assert store.document.snapshot() == initial
    assert not store.undo()

    for _ in range(n + 1):
        assert store.redo()
    assert store.document.snapshot() == final
    assert not store.redo()


def test_new_commit_after_undo_clears_redo():
    store, surface = _store()
    surface.edit("p0", "<div><p>one</p></div>")
    surface.edit("p0", "<div><p>two</p></div>")
    assert store.undo()
    surface.edit("p0", "<div><p>branch</p></div>")
    assert not store.history.can_redo
    assert not store.redo()
    assert store.pages[0].content == "<div><p>branch</p></div>"


def test_undo_restores_editing_surface_and_page_set():
    store, surface = _store()
    added = store.add_page()
    assert added.id in surface
    store.undo()
    assert len(store) == 1
    assert added.id not in surface
    assert surface.get_serialized_content("p0") == "<div><p>start</p></div>"
    assert store.current_index == 0


def test_snapshots_do_not_alias_live_pages():
    store, _ = _store()
    store.add_page()
    store.pages[0].content = "<div>mutated in place</div>"
    store.undo()
    assert store.pages[0].content == "<div><p>start</p></div>"


def test_corrupt_snapshot_leaves_state_unchanged():
    store, surface = _store()
    surface.edit("p0", "<div><p>good</p></div>")
    store.history.commit(HistorySnapshot("{not json"))
    before = store.document.snapshot()
    assert not store.undo()
    assert store.document.snapshot() == before
    assert not store.history.can_redo
    # the valid entry underneath is still reachable
    assert store.undo()
    assert store.pages[0].content == "<div><p>start</p></div>"


def test_corrupt_redo_snapshot_leaves_state_unchanged():
    store, surface = _store()
    surface.edit("p0", "<div><p>edited</p></div>")
    assert store.undo()
    store.history._redo.append(HistorySnapshot("[]"))
    before = store.document.snapshot()
    assert not store.redo()
    assert store.document.snapshot() == before
    assert store.history.undo_depth == 0
    assert store.redo()
    assert store.pages[0].content == "<div><p>edited</p></div>"
