import pytest

from shared.models import CatalogEntry, SelectionState
from selector.session import SelectionSession, interpret_reply, render_results

from conftest import FakeTransport

RESULT = [CatalogEntry.from_name(n) for n in ("a.mp3", "ab.mp3", "abc.wav")]


def test_render_is_one_indexed():
    text = render_results(RESULT, timeout=30, cancel_keyword="cancel")
    lines = text.splitlines()
    assert lines[0] == "Search results:"
    assert lines[1:4] == ["1. a", "2. ab", "3. abc"]
    assert "30 seconds" in lines[-1]
    assert "'cancel'" in lines[-1]


def test_cancel_keyword():
    outcome = interpret_reply("cancel", 3, cancel_keyword="cancel")
    assert outcome.state is SelectionState.CANCELLED


def test_cancel_keyword_is_exact():
    assert interpret_reply("Cancel", 3, cancel_keyword="cancel").state is SelectionState.INVALID
    assert interpret_reply("cancel please", 3, cancel_keyword="cancel").state is SelectionState.INVALID


@pytest.mark.parametrize("reply", ["0", "4", "9", "-1", "100"])
def test_out_of_range_is_invalid(reply):
    assert interpret_reply(reply, 3).state is SelectionState.INVALID


@pytest.mark.parametrize("reply", ["", " ", "two", "2.0", "1.5", "2a", "#2", "NaN",
                                   "1_0", "+2", "２", "٢", "0x2"])
def test_non_integer_is_invalid(reply):
    assert interpret_reply(reply, 3).state is SelectionState.INVALID


@pytest.mark.parametrize("reply,index", [("1", 1), ("3", 3), (" 2 ", 2), ("2\n", 2)])
def test_valid_selection(reply, index):
    outcome = interpret_reply(reply, 3)
    assert outcome.state is SelectionState.SELECTED
    assert outcome.index == index


def test_session_resolves_selected_entry():
    transport = FakeTransport(replies=["2"])
    session = SelectionSession(RESULT, transport, timeout=30)
    outcome = session.run()
    assert outcome.is_selected
    assert outcome.entry.raw_name == "ab.mp3"
    assert session.state is SelectionState.SELECTED
    assert transport.timeouts == [30]


def test_session_consumes_one_reply_only():
    transport = FakeTransport(replies=["nope", "2"])
    outcome = SelectionSession(RESULT, transport).run()
    assert outcome.state is SelectionState.INVALID
    assert transport.replies == ["2"]
    assert len(transport.sent) == 1


def test_session_timeout_sends_nothing_more():
    transport = FakeTransport(replies=[])
    outcome = SelectionSession(RESULT, transport, timeout=5).run()
    assert outcome.state is SelectionState.TIMED_OUT
    assert len(transport.sent) == 1  # only the result list


def test_session_needs_results():
    with pytest.raises(ValueError):
        SelectionSession([], FakeTransport())
