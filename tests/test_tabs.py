import pytest

from kiwidesk.tabs import Tab, TabBarModel, TabKind, tab_title_from_url


def _model_with(n):
    model = TabBarModel()
    tabs = [model.create_new_tab(False, False) for _ in range(n)]
    return model, tabs


def test_initial_layout():
    model = TabBarModel()
    kinds = [tab.kind for tab in model.tabs]
    assert kinds == [TabKind.LIBRARY, TabKind.NEW_TAB]
    assert model.real_tab_count() == len(model) - 1
    assert model.current_tab().kind is TabKind.LIBRARY


def test_new_tab_goes_before_plus_button():
    model, tabs = _model_with(3)
    assert model.tabs[-1].kind is TabKind.NEW_TAB
    assert list(model.tabs[1:-1]) == tabs
    assert model.real_tab_count() == len(model) - 1


def test_new_tab_set_current():
    model = TabBarModel()
    tab = model.create_new_tab(True, False)
    assert model.current_tab() is tab


def test_adjacent_tab_inserted_after_current():
    model, tabs = _model_with(3)
    model.set_current_index(model.tabs.index(tabs[0]))
    new = model.create_new_tab(False, True)
    assert model.tabs.index(new) == model.tabs.index(tabs[0]) + 1
    assert model.current_tab() is tabs[0]


def test_insert_before_current_keeps_selection():
    model, tabs = _model_with(2)
    model.set_current_index(model.tabs.index(tabs[1]))
    model.set_current_index(0)
    model.create_new_tab(False, True)
    assert model.current_tab().kind is TabKind.LIBRARY
    model.set_current_index(model.tabs.index(tabs[1]))
    model.create_new_tab(False, False)
    assert model.current_tab() is tabs[1]


def test_plus_button_cannot_be_selected():
    model, tabs = _model_with(2)
    model.set_current_index(len(model) - 1)
    assert model.current_tab() is tabs[-1]


def test_out_of_range_selection_ignored():
    model, tabs = _model_with(1)
    model.set_current_index(len(model) + 5)
    model.set_current_index(-1)
    assert model.current_tab().kind is TabKind.LIBRARY


def test_next_tab_wraps():
    model, tabs = _model_with(2)
    model.set_current_index(model.tabs.index(tabs[-1]))
    model.move_to_next_tab()
    assert model.current_tab().kind is TabKind.LIBRARY
    model.move_to_next_tab()
    assert model.current_tab() is tabs[0]


def test_previous_tab_wraps():
    model, tabs = _model_with(2)
    model.move_to_previous_tab()
    assert model.current_tab() is tabs[-1]
    model.move_to_previous_tab()
    assert model.current_tab() is tabs[0]


def test_select_by_shortcut():
    model, tabs = _model_with(3)
    model.select_by_shortcut(2)
    assert model.current_tab() is tabs[0]
    model.select_by_shortcut(9)
    assert model.current_tab() is tabs[0]


def test_shortcut_zero_means_tenth():
    model, tabs = _model_with(10)
    model.select_by_shortcut(0)
    assert model.current_tab() is tabs[8]


def test_close_tab_returns_it_and_removes_it():
    model, tabs = _model_with(2)
    index = model.tabs.index(tabs[0])
    closed = model.close_tab(index)
    assert closed is tabs[0]
    assert tabs[0] not in model.tabs
    assert model.real_tab_count() == len(model) - 1


def test_close_current_selects_right_neighbour():
    model, tabs = _model_with(3)
    model.set_current_index(model.tabs.index(tabs[1]))
    model.close_tab(model.tabs.index(tabs[1]))
    assert model.current_tab() is tabs[2]


def test_close_last_real_tab_selects_left_neighbour():
    model, tabs = _model_with(3)
    model.set_current_index(model.tabs.index(tabs[2]))
    model.close_tab(model.tabs.index(tabs[2]))
    assert model.current_tab() is tabs[1]


def test_library_and_plus_button_cannot_be_closed():
    model, tabs = _model_with(1)
    assert model.close_tab(0) is None
    assert model.close_tab(len(model) - 1) is None
    assert model.tabs[0].kind is TabKind.LIBRARY
    assert model.tabs[-1].kind is TabKind.NEW_TAB


def test_close_tab_out_of_range():
    model = TabBarModel()
    with pytest.raises(IndexError):
        model.close_tab(-1)


def test_close_tabs_by_zim_id():
    model, tabs = _model_with(4)
    tabs[0].zim_id = "alpha"
    tabs[1].zim_id = "beta"
    tabs[2].zim_id = "alpha"
    tabs[3].zim_id = "gamma"
    closed = model.close_tabs_by_zim_id("alpha")
    assert set(map(id, closed)) == {id(tabs[0]), id(tabs[2])}
    assert all(tab.zim_id != "alpha" for tab in model.tabs)
    assert tabs[1] in model.tabs and tabs[3] in model.tabs


def test_open_settings_once():
    model, tabs = _model_with(1)
    settings = model.open_settings()
    assert settings.kind is TabKind.SETTINGS
    assert model.current_tab() is settings
    model.set_current_index(0)
    again = model.open_settings()
    assert again is settings
    assert model.current_tab() is settings
    assert sum(tab.kind is TabKind.SETTINGS for tab in model.tabs) == 1


def test_tab_title_from_zim_url():
    assert tab_title_from_url("zim://wiki.zim/A/Some%20Page") == "/A/Some Page"
    assert tab_title_from_url("Plain title") == "Plain title"


def test_set_title_of_current_and_given():
    model, tabs = _model_with(2)
    model.set_current_index(model.tabs.index(tabs[0]))
    model.set_title_of("First")
    model.set_title_of("zim://wiki.zim/A/Page", tabs[1])
    assert tabs[0].title == "First"
    assert tabs[1].title == "/A/Page"


def test_set_title_of_unknown_tab_ignored():
    model, tabs = _model_with(1)
    stranger = Tab(TabKind.ZIM)
    model.set_title_of("Nope", stranger)
    assert stranger.title == ""
    assert tabs[0].title == ""


def test_move_tab_between_content_tabs():
    model, tabs = _model_with(3)
    model.set_current_index(model.tabs.index(tabs[0]))
    source = model.tabs.index(tabs[0])
    target = model.tabs.index(tabs[2])
    assert model.move_tab(source, target) is True
    assert model.tabs.index(tabs[0]) == target
    assert model.current_tab() is tabs[0]


def test_move_tab_refused_for_fixed_places():
    model, tabs = _model_with(2)
    before = model.tabs
    last = len(model) - 1
    assert model.move_tab(0, 1) is False
    assert model.move_tab(1, 0) is False
    assert model.move_tab(last, 1) is False
    assert model.move_tab(1, last) is False
    assert model.tabs == before


def test_move_tab_out_of_range():
    model, _ = _model_with(1)
    with pytest.raises(IndexError):
        model.move_tab(1, len(model))


def test_tab_size_hint():
    model, tabs = _model_with(1)
    settings = model.open_settings()
    assert model.tab_size_hint(0) == (40, 40)
    assert model.tab_size_hint(model.tabs.index(tabs[0])) == (205, 40)
    assert model.tab_size_hint(model.tabs.index(settings)) == (205, 40)


def test_history_actions_follow_current_tab():
    model, tabs = _model_with(1)
    tabs[0].back_enabled = True
    assert model.history_actions_enabled() == (False, False)
    model.set_current_index(model.tabs.index(tabs[0]))
    assert model.history_actions_enabled() == (True, False)
    model.open_settings()
    assert model.history_actions_enabled() == (False, False)