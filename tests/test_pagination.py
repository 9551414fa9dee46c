import pytest

from messenger.ui.pagination import PageView, MultiSelectView, NavState


def pages(view: PageView) -> list[list[int]]:
    seen = [[index for index, _ in view.render()]]
    while view.next():
        seen.append([index for index, _ in view.render()])
    return seen


class TestPageView:

    def test_pages_of_23_items(self):
        view = PageView(range(23), page_size=10)

        assert [len(page) for page in pages(view)] == [10, 10, 3]

    def test_indices_are_absolute(self):
        view = PageView([f"user{i}" for i in range(23)], page_size=10)
        view.next()

        assert view.render()[0] == (10, "user10")
        assert view.render()[-1] == (19, "user19")

    def test_next_on_last_page_stays(self):
        view = PageView(range(23), page_size=10)
        assert view.next()
        assert view.next()

        assert not view.next()
        assert view.offset == 20
        assert view.state == NavState.BROWSING

    def test_back_from_first_page_terminates(self):
        view = PageView(range(23), page_size=10)

        assert not view.back()
        assert view.terminated

    def test_back_from_second_page_returns_to_first(self):
        view = PageView(range(23), page_size=10)
        view.next()

        assert view.back()
        assert view.offset == 0
        assert not view.terminated

    def test_select_only_within_window(self):
        view = PageView([f"user{i}" for i in range(23)], page_size=10)
        view.next()

        assert view.select(5) is None
        assert view.select(20) is None
        assert view.state == NavState.BROWSING
        assert view.select(12) == "user12"
        assert view.state == NavState.SELECTED

    def test_select_past_end_of_short_page(self):
        view = PageView(range(23), page_size=10)
        view.next()
        view.next()

        assert view.select(22) == 22
        assert view.select(23) is None

    def test_reload_steps_back_when_page_empties(self):
        view = PageView(range(11), page_size=10)
        view.next()

        view.reload(range(10))

        assert view.offset == 0
        assert view.state == NavState.BROWSING

    def test_reload_keeps_offset_when_page_still_filled(self):
        view = PageView(range(23), page_size=10)
        view.next()

        view.reload(range(22))

        assert view.offset == 10

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValueError):
            PageView([], page_size=0)


class TestMultiSelectView:

    def test_selected_item_leaves_the_list(self):
        view = MultiSelectView(["bob", "carol", "dave"], page_size=10)

        assert view.select(1) == "carol"
        assert view.items == ["bob", "dave"]
        assert view.select(1) == "dave"

        assert view.finish() == ["carol", "dave"]
        assert view.terminated

    def test_finish_without_selection(self):
        view = MultiSelectView(["bob"], page_size=10)

        assert view.finish() == []

    def test_selection_emptying_last_page_steps_back(self):
        view = MultiSelectView([f"user{i}" for i in range(11)], page_size=10)
        view.next()

        assert view.select(10) == "user10"
        assert view.offset == 0

    def test_back_on_first_page_terminates(self):
        view = MultiSelectView(["bob"], page_size=10)
        view.select(0)

        assert not view.back()
        assert view.terminated
