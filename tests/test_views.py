import pytest

from kiwidesk.views import (
    LEFT_BUTTON,
    HistoryButtons,
    WebAction,
    WindowDragger,
    ZimView,
    ZoomStore,
    clamp_zoom,
    hovered_link_text,
    zoom_in,
    zoom_out,
)


def test_clamp_limits():
    assert clamp_zoom(10.0) == 5.0
    assert clamp_zoom(0.0) == 0.25
    assert clamp_zoom(1.3) == 1.3


def test_zoom_steps_are_inverse():
    assert zoom_out(zoom_in(1.0)) == pytest.approx(1.0)
    assert zoom_in(2.0) > 2.0
    assert zoom_out(2.0) < 2.0


def test_zoom_stays_in_range():
    assert zoom_in(5.0) == 5.0
    assert zoom_out(0.25) == 0.25


def test_hovered_link_text():
    assert hovered_link_text("") is None
    assert hovered_link_text("zim://abc.zim/A/Foo") == "/A/Foo"
    assert hovered_link_text("https://example.com/page") == "https://example.com/page"


def test_zoom_store_defaults_and_reset():
    store = ZoomStore(1.5)
    assert store.factor_for("book") == 1.5
    store.set_factor("book", 2.0)
    assert store.factor_for("book") == 2.0
    assert store.factor_for("other") == 1.5
    store.reset("book")
    assert store.factor_for("book") == 1.5


def test_zimview_zoom_in_is_remembered():
    store = ZoomStore(1.0)
    view = ZimView("book", store)
    factor = view.zoom_in()
    assert factor == view.zoom_factor
    assert store.factor_for("book") == factor
    assert view.zoom_out() == pytest.approx(1.0)


def test_zimview_reset():
    store = ZoomStore(1.0)
    view = ZimView("book", store)
    view.zoom_in()
    assert view.zoom_reset() == 1.0
    assert store.factor_for("book") == 1.0
    assert ZimView("book", store).zoom_factor == 1.0


def test_default_change_followed_only_without_own_factor():
    store = ZoomStore(1.0)
    plain = ZimView("a", store)
    zoomed = ZimView("b", store)
    own = zoomed.zoom_in()
    store.default = 2.0
    plain.on_default_zoom_changed()
    zoomed.on_default_zoom_changed()
    assert plain.zoom_factor == 2.0
    assert zoomed.zoom_factor == own


def test_open_find_bar():
    view = ZimView("book", ZoomStore())
    assert view.find_bar_visible is False
    view.open_find_in_page_bar()
    assert view.find_bar_visible is True
    assert view.find_bar_focused is True


def test_history_buttons():
    buttons = HistoryButtons()
    buttons.handle_web_action_enabled_changed(WebAction.BACK, False)
    assert buttons.back_enabled is False
    assert buttons.forward_enabled is True
    buttons.handle_web_action_enabled_changed(WebAction.FORWARD, False)
    assert buttons.forward_enabled is False
    buttons.handle_web_action_enabled_changed(WebAction.RELOAD, True)
    assert (buttons.back_enabled, buttons.forward_enabled) == (False, False)


def test_drag_ignores_other_buttons():
    dragger = WindowDragger()
    assert dragger.press("right", (10, 10), (0, 0), 1) is False
    assert dragger.move((20, 20), 2) is None


def test_drag_moves_with_cursor():
    dragger = WindowDragger()
    assert dragger.press(LEFT_BUTTON, (100, 50), (7, 3), 1) is True
    first = dragger.move((100, 50), 2)
    assert first == (-7, -3)
    second = dragger.move((130, 70), 3)
    assert (second[0] - first[0], second[1] - first[1]) == (30, 20)


def test_drag_ignores_stale_events():
    dragger = WindowDragger()
    dragger.press(LEFT_BUTTON, (0, 0), (0, 0), 5)
    assert dragger.move((10, 10), 5) is None
    assert dragger.move((10, 10), 4) is None
    assert dragger.move((10, 10), 6) == (10, 10)